"""Domain errors raised by services and translated to HTTP by the app."""


class QuillError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(QuillError):
    status_code = 404
    default_message = "Not found"


class OwnershipError(QuillError):
    status_code = 403
    default_message = "Forbidden"


class InvalidInputError(QuillError):
    status_code = 400
    default_message = "Invalid request"


class TemplateError(QuillError):
    """A stored document cannot be rendered (required token missing)."""

    status_code = 500
    default_message = "Template is missing required placeholders"


class DesignGenerationError(QuillError):
    """The LLM failed or returned output that cannot be stored."""

    status_code = 502
    default_message = "AI design generation failed"


class DesignTimeoutError(DesignGenerationError):
    status_code = 504
    default_message = "AI design generation timed out"
