"""AI redesign request model."""

from pydantic import BaseModel, ConfigDict, Field


class AIDesignRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    blog_post_id: str | None = Field(None, alias="blogPostId")
    theme_prompt: str | None = Field(None, alias="themePrompt", max_length=2000)
