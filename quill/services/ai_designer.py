"""AI redesign of a post's stored HTML document.

The model receives only the placeholder-templated document and the style
instructions, never the post's real text. Its reply is accepted only if it
contains a complete HTML document that still carries every placeholder
token; anything else leaves the stored document untouched.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from quill.config import get_settings
from quill.services import events
from quill.services.design_prompt import (
    PromptAnalysis,
    analyze_prompt,
    infer_color_scheme,
    infer_style,
)
from quill.services.errors import (
    DesignGenerationError,
    DesignTimeoutError,
    InvalidInputError,
    NotFoundError,
)
from quill.services.html_template import ALL_PLACEHOLDERS, missing_placeholders
from quill.services.llm import LLMError, LLMTimeoutError, LLMTransportError, chat_completion
from quill.services.posts import require_owner
from quill.tables import BlogPost, User

logger = logging.getLogger(__name__)

_TOKEN_LIST = ", ".join(p.value for p in ALL_PLACEHOLDERS)

SYSTEM_PROMPT = f"""You are a professional web designer. You restyle a complete HTML page for a blog post.

The page you receive is a template. Author and article data appear only as placeholder tokens: {_TOKEN_LIST}.

Rules:
1. Change presentation only: CSS, layout, colors, typography, decorative markup, and animations.
2. Every placeholder token must appear in your output, spelled exactly as given, in a sensible place. Never replace a token with real or invented text.
3. Do not write any article text, titles, names, dates, or sample content of your own.
4. Do not add navigation bars, headers with links, or buttons. The host page overlays its own controls at the top-left and top-right corners, so keep those areas visually uncluttered.
5. Keep all CSS in a <style> block in the <head>. Do not reference external scripts.
6. Return ONLY the complete document, from <!DOCTYPE html> to </html>, with no explanations or markdown fences."""

USER_PROMPT = """DESIGN REQUIREMENTS:
{requirements}

Here is the current HTML page to redesign:

{document}"""

_DOCTYPE_RE = re.compile(r"<!DOCTYPE\s+html", re.IGNORECASE)
_HTML_END_RE = re.compile(r"</html\s*>", re.IGNORECASE)


@dataclass
class DesignResult:
    """Outcome of a successful redesign."""

    post_id: str
    analysis: PromptAnalysis
    style: str
    color_scheme: str
    attempts: int


def extract_html_document(text: str) -> str | None:
    """Span from the first ``<!DOCTYPE html`` to the last ``</html>``, or None."""
    if not text:
        return None
    start = _DOCTYPE_RE.search(text)
    if start is None:
        return None
    end = None
    for end in _HTML_END_RE.finditer(text, start.start()):
        pass
    if end is None:
        return None
    return text[start.start() : end.end()]


def build_prompt(document: str, analysis: PromptAnalysis) -> str:
    return USER_PROMPT.format(requirements=analysis.enhanced_prompt, document=document)


async def _generate(prompt: str) -> tuple[str, int]:
    """Call the model, retrying transport failures with backoff.

    Returns the raw reply and the number of attempts used.
    """
    settings = get_settings()
    max_retries = max(0, settings.design_max_retries)

    for attempt in range(max_retries + 1):
        try:
            reply = await chat_completion(
                prompt,
                system=SYSTEM_PROMPT,
                max_tokens=settings.design_max_tokens,
                temperature=settings.design_temperature,
                timeout=settings.design_timeout_seconds,
            )
            return reply, attempt + 1

        except LLMTransportError as e:
            if attempt < max_retries:
                delay = settings.design_retry_backoff * (2**attempt)
                logger.warning(
                    "Design generation failed, attempt %d/%d, retrying in %.1fs: %s",
                    attempt + 1,
                    max_retries + 1,
                    delay,
                    e,
                )
                await asyncio.sleep(delay)
                continue
            if isinstance(e, LLMTimeoutError):
                raise DesignTimeoutError() from e
            raise DesignGenerationError() from e

        except LLMError as e:
            logger.error("LLM error during design generation: %s", e)
            raise DesignGenerationError() from e

    # Loop always returns or raises
    raise DesignGenerationError()


def _validate_reply(reply: str) -> str:
    document = extract_html_document(reply)
    if document is None:
        raise DesignGenerationError("AI response did not contain a complete HTML document")
    missing = missing_placeholders(document)
    if missing:
        names = ", ".join(p.value for p in missing)
        raise DesignGenerationError(f"AI response dropped placeholders: {names}")
    return document


def _store_design(
    db: Session, post_id: str, document: str, website_settings: dict[str, Any]
) -> None:
    """Persist an accepted design on a freshly loaded row."""
    post = db.get(BlogPost, post_id, populate_existing=True)
    if post is None:
        raise NotFoundError("Blog post not found")
    post.ai_generated_html = document
    post.is_ai_designed = True
    post.ai_designed_at = datetime.now(timezone.utc)
    post.ai_website_settings = website_settings
    db.commit()


async def redesign_post(
    db: Session, post: BlogPost, user: User, theme_prompt: str | None
) -> DesignResult:
    """Restyle *post*'s stored document according to *theme_prompt*.

    Args:
        db: Open session. Its transaction is ended before the model call
            and the row is reloaded to store the result.
        post: The post to redesign.
        user: The caller; must own the post.
        theme_prompt: Free-text style request. Unusable prompts are replaced
            by a safe default rather than rejected.

    Returns:
        Details of the applied design.

    Raises:
        OwnershipError: The caller does not own the post.
        InvalidInputError: The post has no stored document.
        DesignTimeoutError: The model timed out on every attempt.
        DesignGenerationError: The model failed or its reply was unusable.
    """
    require_owner(post, user, "You can only redesign your own blog posts")

    post_id = post.id
    category = post.category
    existing = post.ai_generated_html
    if not existing:
        raise InvalidInputError("No HTML found to modify")

    # End the read transaction so no pooled connection is held during the model call
    await asyncio.to_thread(db.commit)

    analysis = analyze_prompt(theme_prompt)
    if analysis.used_default:
        logger.info(
            "Prompt for post %s classed as %s, using default design prompt",
            post_id,
            analysis.verdict.value,
        )

    try:
        reply, attempts = await _generate(build_prompt(existing, analysis))
        document = _validate_reply(reply)
    except DesignGenerationError as e:
        logger.warning("Design for post %s rejected: %s", post_id, e.message, exc_info=True)
        events.publish(events.DESIGN_FAILED, post_id=post_id, reason=e.message)
        # Client-facing message stays generic; the cause is in the log
        raise type(e)() from e

    style = infer_style(analysis.original, category)
    color_scheme = infer_color_scheme(analysis.original, category)
    website_settings = {
        "style": style,
        "color_scheme": color_scheme,
        "prompt": analysis.original,
        "prompt_verdict": analysis.verdict.value,
        "suggested_style": f"{style} design with {color_scheme} color scheme",
    }
    await asyncio.to_thread(_store_design, db, post_id, document, website_settings)

    logger.info(
        "Applied AI design to post %s (style=%s, attempts=%d)", post_id, style, attempts
    )
    events.publish(events.DESIGN_APPLIED, post_id=post_id, style=style, attempts=attempts)
    return DesignResult(
        post_id=post_id,
        analysis=analysis,
        style=style,
        color_scheme=color_scheme,
        attempts=attempts,
    )
