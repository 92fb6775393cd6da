"""Placeholder-templated HTML documents for blog posts.

Every post stores a complete HTML document whose author and content data are
represented by placeholder tokens such as ``{TITLE}``. The AI redesigner only
ever sees and rewrites the presentation around those tokens; real values are
substituted at render time.
"""

import html
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from quill.services.errors import TemplateError
from quill.services.rich_text import render_content


class Placeholder(str, Enum):
    """The closed set of substitution tokens."""

    TITLE = "{TITLE}"
    SUBTITLE = "{SUBTITLE}"
    CONTENT = "{CONTENT}"
    AUTHOR_NAME = "{AUTHOR_NAME}"
    AUTHOR_AVATAR = "{AUTHOR_AVATAR}"
    PUBLISH_DATE = "{PUBLISH_DATE}"
    READ_TIME = "{READ_TIME}"
    CATEGORY = "{CATEGORY}"


ALL_PLACEHOLDERS: tuple[Placeholder, ...] = tuple(Placeholder)

# Rendering a document without these is an error; the rest are optional
REQUIRED_PLACEHOLDERS: frozenset[Placeholder] = frozenset(
    {Placeholder.TITLE, Placeholder.CONTENT}
)

DEFAULT_CATEGORY = "General"
UNKNOWN_AUTHOR = "Unknown Author"

INITIAL_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{TITLE}</title>
  <style>
    * { margin: 0; padding: 0; box-sizing: border-box; }

    body {
      font-family: 'Inter', 'Helvetica Neue', Arial, sans-serif;
      line-height: 1.7;
      color: #f3f4f6;
      background: #000000;
      min-height: 100vh;
    }

    .hero {
      padding: 5rem 1rem 3rem;
      text-align: center;
      max-width: 1200px;
      margin: 0 auto;
    }

    .hero-category {
      display: inline-block;
      padding: 0.25rem 0.75rem;
      margin-bottom: 1.5rem;
      border-radius: 9999px;
      font-size: 0.875rem;
      color: #c4b5fd;
      border: 1px solid rgba(196, 181, 253, 0.4);
    }

    .hero-title {
      font-size: clamp(2.25rem, 6vw, 4rem);
      font-weight: 900;
      line-height: 1.1;
      margin-bottom: 1.5rem;
      background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
      -webkit-background-clip: text;
      -webkit-text-fill-color: transparent;
      background-clip: text;
    }

    .subtitle {
      font-size: 1.375rem;
      color: #d1d5db;
      max-width: 800px;
      margin: 0 auto 2.5rem;
    }

    .hero-meta {
      display: flex;
      flex-wrap: wrap;
      align-items: center;
      justify-content: center;
      gap: 1rem;
      color: #9ca3af;
    }

    .author-info { display: flex; align-items: center; gap: 0.5rem; }

    .author-avatar {
      width: 2.5rem;
      height: 2.5rem;
      border-radius: 50%;
      background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
      display: flex;
      align-items: center;
      justify-content: center;
      color: #ffffff;
      font-weight: 700;
      overflow: hidden;
    }

    .author-avatar img { width: 100%; height: 100%; object-fit: cover; }

    .author-name { color: #ffffff; font-weight: 500; }

    .main-content { padding: 2rem 1rem 6rem; }

    .content-wrapper { max-width: 760px; margin: 0 auto; }

    .blog-content { font-size: 1.125rem; color: #e5e7eb; }
    .blog-content h1, .blog-content h2, .blog-content h3 {
      color: #ffffff;
      line-height: 1.3;
      margin: 2.5rem 0 1rem;
    }
    .blog-content p { margin-bottom: 1.5rem; }
    .blog-content a { color: #a5b4fc; }
    .blog-content ul, .blog-content ol { margin: 0 0 1.5rem 1.5rem; }
    .blog-content blockquote {
      border-left: 4px solid #764ba2;
      padding-left: 1rem;
      margin: 2rem 0;
      color: #d1d5db;
      font-style: italic;
    }
    .blog-content pre {
      background: #111827;
      padding: 1rem;
      border-radius: 0.5rem;
      overflow-x: auto;
      margin-bottom: 1.5rem;
    }
    .blog-content img { max-width: 100%; height: auto; border-radius: 0.75rem; }

    @media (max-width: 640px) {
      .hero { padding: 3rem 1rem 2rem; }
      .blog-content { font-size: 1rem; }
    }
  </style>
</head>
<body>
  <section class="hero">
    <span class="hero-category">{CATEGORY}</span>
    <h1 class="hero-title">{TITLE}</h1>
    {SUBTITLE}
    <div class="hero-meta">
      <div class="author-info">
        <div class="author-avatar">{AUTHOR_AVATAR}</div>
        <div class="author-name">{AUTHOR_NAME}</div>
      </div>
      <div class="publish-date">{PUBLISH_DATE}</div>
      <div class="read-time">{READ_TIME} min read</div>
    </div>
  </section>

  <main class="main-content">
    <div class="content-wrapper">
      <article class="blog-content">
        {CONTENT}
      </article>
    </div>
  </main>
</body>
</html>
"""


def initial_template() -> str:
    """The default document stored for every new post."""
    return INITIAL_TEMPLATE


def missing_placeholders(document: str) -> list[Placeholder]:
    """Tokens from the closed set that do not occur in *document*."""
    return [p for p in ALL_PLACEHOLDERS if p.value not in (document or "")]


@dataclass
class TemplateFields:
    """Values substituted into a post document.

    ``content_html`` is inserted as markup; every other field is plain text
    and is escaped on substitution.
    """

    title: str
    content_html: str
    subtitle: str = ""
    author_name: str = UNKNOWN_AUTHOR
    author_avatar_url: str = ""
    published: datetime | None = None
    read_time: int = 1
    category: str = DEFAULT_CATEGORY

    def substitutions(self) -> dict[Placeholder, str]:
        author_name = self.author_name or UNKNOWN_AUTHOR
        escaped_author = html.escape(author_name)

        if self.author_avatar_url:
            avatar = (
                f'<img src="{html.escape(self.author_avatar_url, quote=True)}" '
                f'alt="{html.escape(author_name, quote=True)}" />'
            )
        else:
            avatar = html.escape(author_name[0].upper())

        subtitle = (
            f'<p class="subtitle">{html.escape(self.subtitle)}</p>' if self.subtitle else ""
        )

        return {
            Placeholder.TITLE: html.escape(self.title or "Untitled"),
            Placeholder.SUBTITLE: subtitle,
            Placeholder.CONTENT: self.content_html or "",
            Placeholder.AUTHOR_NAME: escaped_author,
            Placeholder.AUTHOR_AVATAR: avatar,
            Placeholder.PUBLISH_DATE: format_publish_date(self.published),
            Placeholder.READ_TIME: str(max(1, self.read_time or 1)),
            Placeholder.CATEGORY: html.escape(self.category or DEFAULT_CATEGORY),
        }


def format_publish_date(value: datetime | None) -> str:
    if value is None:
        return ""
    return value.strftime("%B %d, %Y")


def fields_for_post(post) -> TemplateFields:
    """Build template fields from a ``BlogPost`` row and its author."""
    author = post.author
    author_name = UNKNOWN_AUTHOR
    avatar_url = ""
    if author is not None:
        author_name = author.display_name
        avatar_url = author.profile_image_url or ""

    return TemplateFields(
        title=post.title,
        content_html=render_content(post.content or ""),
        subtitle=post.subtitle or "",
        author_name=author_name,
        author_avatar_url=avatar_url,
        published=post.publish_reference_time(),
        read_time=post.read_time or 1,
        category=post.category or DEFAULT_CATEGORY,
    )


def render_template(document: str, fields: TemplateFields) -> str:
    """Substitute *fields* into *document*.

    Raises:
        TemplateError: If a required token is absent from the document.
    """
    missing = [p for p in REQUIRED_PLACEHOLDERS if p.value not in (document or "")]
    if missing:
        names = ", ".join(sorted(p.value for p in missing))
        raise TemplateError(f"Template is missing required placeholders: {names}")

    # One pass over the document so substituted values are never rescanned
    substitutions = {p.value: value for p, value in fields.substitutions().items()}
    pattern = re.compile("|".join(re.escape(token) for token in substitutions))
    return pattern.sub(lambda m: substitutions[m.group(0)], document)
