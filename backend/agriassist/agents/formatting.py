"""Local post-processing of raw model text.

The steps run in a fixed order: strip a role prefix, collapse blank lines,
expand short replies, then annotate farming nouns with emoji.
"""

import re

from agriassist.agents.categories import detect_category, expansion_for, template_for

MIN_REPLY_LENGTH = 50
# Below this the secondary model's reply is discarded for a template
MIN_FALLBACK_LENGTH = 20

ROLE_PREFIX = re.compile(r"^(Assistant:|AI:|Bot:|Human:|User:)", re.IGNORECASE)
BLANK_LINES = re.compile(r"\n\n+")


def display_length(text: str) -> int:
    """Length in UTF-16 code units, so an astral emoji counts as two."""
    return len(text.encode("utf-16-le")) // 2


# Applied top to bottom. Each pattern is whole-word and case-insensitive.
EMOJI_ANNOTATIONS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"\b(maize|corn)\b", re.IGNORECASE), "🌽"),
    (re.compile(r"\b(tomato|tomatoes)\b", re.IGNORECASE), "🍅"),
    (re.compile(r"\b(potato|potatoes)\b", re.IGNORECASE), "🥔"),
    (re.compile(r"\b(wheat)\b", re.IGNORECASE), "🌾"),
    (re.compile(r"\b(cattle|cow|cows)\b", re.IGNORECASE), "🐄"),
    (re.compile(r"\b(chicken|chickens|poultry)\b", re.IGNORECASE), "🐔"),
    (re.compile(r"\b(sheep)\b", re.IGNORECASE), "🐑"),
    (re.compile(r"\b(water|irrigation)\b", re.IGNORECASE), "💧"),
    (re.compile(r"\b(fertilizer|nutrients)\b", re.IGNORECASE), "🌿"),
    (re.compile(r"\b(harvest|harvesting)\b", re.IGNORECASE), "🌾"),
]


def strip_role_prefix(text: str) -> str:
    return ROLE_PREFIX.sub("", text, count=1)


def collapse_blank_lines(text: str) -> str:
    return BLANK_LINES.sub("\n\n", text)


def expand_short_response(text: str, category: str) -> str:
    if display_length(text) >= MIN_REPLY_LENGTH:
        return text
    return f"{text} {expansion_for(category)}"


def add_farming_emojis(text: str) -> str:
    for pattern, emoji in EMOJI_ANNOTATIONS:
        text = pattern.sub(lambda m, e=emoji: f"{e} {m.group(1)}", text)
    return text


def format_response(text: str, user_message: str, category: str | None = None, template_floor: bool = False) -> str:
    """Clean a raw model reply for display.

    ``category`` defaults to the one detected from ``user_message``. With
    ``template_floor`` set (secondary-model replies), cleaned text under
    MIN_FALLBACK_LENGTH characters is replaced by the category template
    before the short-reply expansion is considered.
    """
    if category is None:
        category = detect_category(user_message)

    formatted = collapse_blank_lines(strip_role_prefix(text)).strip()

    if template_floor and display_length(formatted) < MIN_FALLBACK_LENGTH:
        formatted = template_for(category)

    formatted = expand_short_response(formatted, category)
    return add_farming_emojis(formatted)
