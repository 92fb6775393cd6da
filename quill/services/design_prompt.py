"""Validate and enhance user style prompts for AI redesign.

Analysis never rejects a prompt: anything unusable is replaced by a safe
default design prompt, which is still sent to the model.
"""

import re
from dataclasses import dataclass, field
from enum import Enum

MIN_PROMPT_LENGTH = 5

DEFAULT_CLEAN_MODERN = "Create a clean, modern design with good typography and spacing."
DEFAULT_SAFE_PROFESSIONAL = "Create a clean, professional design suitable for all audiences."
DEFAULT_VISUAL_HIERARCHY = (
    "Create a modern, clean design with good visual hierarchy and readability."
)

BLOCKED_TERMS = (
    "fuck", "shit", "ass", "bitch", "dick", "porn", "sex", "nude", "naked",
    "hate", "kill", "death", "blood", "gore", "violence", "terrorist", "bomb",
)

VAGUE_PHRASES = (
    "make it look good", "make it better", "improve it", "fix it",
    "change it", "do something", "whatever", "idk", "i dont know", "i don't know",
)

CONTENT_CHANGE_PHRASES = (
    "change the text", "edit the content", "modify the words", "rewrite",
    "add more text", "remove text", "change title", "change subtitle",
)

# (trigger words, instruction appended to the prompt)
STYLE_HINTS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("dark", "night"), "Use dark backgrounds with light text and subtle accents."),
    (
        ("light", "bright", "white"),
        "Use light backgrounds with dark text and clean typography.",
    ),
    (
        ("colorful", "colourful", "vibrant", "bright"),
        "Use a vibrant color palette with strong contrasts and energetic elements.",
    ),
    (
        ("minimal", "minimalist", "simple", "clean"),
        "Use lots of white space, simple typography, and minimal decorative elements.",
    ),
    (
        ("professional", "business", "corporate"),
        "Use a conservative color palette, structured layout, and readable typography.",
    ),
    (
        ("modern", "contemporary"),
        "Use modern typography, clean lines, and contemporary design principles.",
    ),
    (
        ("elegant", "luxury", "premium"),
        "Use sophisticated typography, refined spacing, and premium visual elements.",
    ),
    (
        ("tech", "futuristic", "cyber", "cyberpunk"),
        "Use futuristic elements, neon accents, and high-tech visual styling.",
    ),
    (
        ("warm", "cozy", "comfortable"),
        "Use warm color tones, soft gradients, and inviting visual elements.",
    ),
    (
        ("creative", "artistic", "art"),
        "Use creative typography, artistic elements, and unique visual styling.",
    ),
)

DESIGN_QUALITY_RULES = """Design quality requirements:
- Keep strong contrast between text and background everywhere (light text on dark backgrounds, dark text on light backgrounds).
- The layout must be responsive and readable from 320px phones to wide desktop screens.
- Preserve semantic structure and accessibility: one h1, readable font sizes, visible link styles.
- Keep the article body comfortable to read: limited line length and generous line height."""

# Ordered: first match wins
_STYLE_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("dark", ("dark", "night")),
    ("colorful", ("colorful", "colourful", "rainbow", "vibrant")),
    ("professional", ("professional", "corporate", "business")),
    ("minimal", ("minimal", "minimalist", "clean", "simple")),
    ("elegant", ("elegant", "luxury", "premium")),
    ("tech", ("tech", "futuristic", "cyber", "cyberpunk")),
    ("nature", ("nature", "organic", "earthy")),
    ("creative", ("creative", "artistic")),
)

_COLOR_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("dark", ("dark", "night", "black")),
    ("light", ("light", "bright", "white")),
    ("colorful", ("colorful", "colourful", "rainbow", "vibrant")),
    ("monochrome", ("monochrome", "grayscale", "greyscale")),
    ("warm", ("warm", "cozy", "sunset", "orange")),
    ("cool", ("cool", "ocean", "blue", "ice")),
)

# Category fragment -> (style, color scheme) used when the prompt says nothing
_CATEGORY_DEFAULTS: tuple[tuple[tuple[str, ...], tuple[str, str]], ...] = (
    (("tech",), ("tech", "dark")),
    (("lifestyle", "fashion"), ("elegant", "warm")),
    (("business", "corporate", "finance"), ("professional", "light")),
    (("creative", "art", "design"), ("creative", "colorful")),
)


class PromptVerdict(str, Enum):
    ACCEPTED = "accepted"
    EMPTY = "empty"
    BLOCKED = "blocked"
    VAGUE = "vague"
    CONTENT_CHANGE = "content_change"


@dataclass
class PromptAnalysis:
    """Outcome of analysing a style prompt."""

    verdict: PromptVerdict
    original: str
    enhanced_prompt: str
    hints: list[str] = field(default_factory=list)

    @property
    def used_default(self) -> bool:
        return self.verdict is not PromptVerdict.ACCEPTED


def _word_pattern(words: tuple[str, ...]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(w) for w in words)
    return re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)


# Blocked terms also catch their inflected forms ("nudes", "bloody", "killing",
# "pornographic") while words that merely contain one ("class", "skill") pass.
_BLOCKED_SUFFIXES = (
    "s", "es", "d", "y", "ies", "ier", "iest", "ing", "ed", "er", "ers", "ful", "ly",
    "ography", "ographic", "ographer",
)
_BLOCKED_RE = re.compile(
    r"\b(?:"
    + "|".join(re.escape(t) for t in BLOCKED_TERMS)
    + r")(?:"
    + "|".join(_BLOCKED_SUFFIXES)
    + r")?\b",
    re.IGNORECASE,
)


def _contains_phrase(text: str, phrases: tuple[str, ...]) -> bool:
    return any(phrase in text for phrase in phrases)


def _matches_any(text: str, words: tuple[str, ...]) -> bool:
    return _word_pattern(words).search(text) is not None


def style_hints(prompt: str) -> list[str]:
    """Design instructions triggered by keywords in *prompt*."""
    return [hint for words, hint in STYLE_HINTS if _matches_any(prompt, words)]


def analyze_prompt(prompt: str | None) -> PromptAnalysis:
    """Classify *prompt* and build the design instructions to send.

    Blocklisted terms are matched from the start of a word, with their
    inflected forms, so that e.g. "class" or "passion" are not caught by "ass".
    """
    original = prompt or ""
    trimmed = original.strip()
    lowered = trimmed.lower()

    if len(trimmed) < MIN_PROMPT_LENGTH:
        return PromptAnalysis(PromptVerdict.EMPTY, original, DEFAULT_CLEAN_MODERN)

    if _BLOCKED_RE.search(lowered):
        return PromptAnalysis(PromptVerdict.BLOCKED, original, DEFAULT_SAFE_PROFESSIONAL)

    if _contains_phrase(lowered, VAGUE_PHRASES):
        return PromptAnalysis(PromptVerdict.VAGUE, original, DEFAULT_VISUAL_HIERARCHY)

    if _contains_phrase(lowered, CONTENT_CHANGE_PHRASES):
        return PromptAnalysis(PromptVerdict.CONTENT_CHANGE, original, DEFAULT_CLEAN_MODERN)

    hints = style_hints(lowered)
    enhanced = " ".join([trimmed, *hints])
    return PromptAnalysis(
        PromptVerdict.ACCEPTED,
        original,
        f"{enhanced}\n\n{DESIGN_QUALITY_RULES}",
        hints=hints,
    )


def _category_defaults(category: str | None) -> tuple[str, str]:
    lowered = (category or "").lower()
    for fragments, defaults in _CATEGORY_DEFAULTS:
        if any(fragment in lowered for fragment in fragments):
            return defaults
    return ("modern", "dark")


def infer_style(prompt: str, category: str | None = None) -> str:
    """Design style named by *prompt*, else a default for *category*."""
    for style, words in _STYLE_KEYWORDS:
        if _matches_any(prompt, words):
            return style
    return _category_defaults(category)[0]


def infer_color_scheme(prompt: str, category: str | None = None) -> str:
    for scheme, words in _COLOR_KEYWORDS:
        if _matches_any(prompt, words):
            return scheme
    return _category_defaults(category)[1]
