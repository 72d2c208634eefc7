"""Post-processing of raw model replies."""

from agriassist.agents.categories import EXPANSIONS, GENERIC_EXPANSION, TEMPLATES
from agriassist.agents.formatting import (
    add_farming_emojis,
    collapse_blank_lines,
    display_length,
    expand_short_response,
    format_response,
    strip_role_prefix,
)


def test_strip_role_prefix_only_at_start():
    assert strip_role_prefix("Assistant: Plant early.") == " Plant early."
    assert strip_role_prefix("ai: Plant early.") == " Plant early."
    assert strip_role_prefix("USER:hi") == "hi"
    assert strip_role_prefix("Ask the User: first") == "Ask the User: first"
    assert strip_role_prefix("Bot: Bot: twice") == " Bot: twice", "only one prefix is removed"


def test_collapse_blank_lines():
    assert collapse_blank_lines("a\n\n\n\nb") == "a\n\nb"
    assert collapse_blank_lines("a\n\nb") == "a\n\nb"
    assert collapse_blank_lines("a\nb") == "a\nb"


def test_short_reply_gets_category_expansion():
    assert expand_short_response("Use compost.", "soil") == "Use compost. " + EXPANSIONS["soil"]
    assert expand_short_response("Ask around.", "general") == "Ask around. " + GENERIC_EXPANSION


def test_fifty_characters_is_not_short():
    text = "x" * 50
    assert expand_short_response(text, "crop") == text
    assert expand_short_response("x" * 49, "crop") != "x" * 49


def test_astral_emoji_count_as_two_units():
    assert display_length("🌽") == 2
    assert display_length("é") == 1
    # 46 letters and two emoji: 48 code points but 50 UTF-16 units
    text = "x" * 46 + "🌽🌱"
    assert expand_short_response(text, "crop") == text


def test_template_floor_counts_utf16_units():
    assert format_response("🌽" * 9, "maize", template_floor=True) == TEMPLATES["crop"]
    # Ten astral emoji are 20 UTF-16 units, so the reply is kept
    kept = "🌽" * 10
    assert format_response(kept, "maize", template_floor=True).startswith(kept)


def test_emoji_precedes_case_preserved_word():
    assert add_farming_emojis("Plant MAIZE after rain") == "Plant 🌽 MAIZE after rain"
    assert add_farming_emojis("cows and chickens need water") == "🐄 cows and 🐔 chickens need 💧 water"
    assert add_farming_emojis("Harvesting Wheat") == "🌾 Harvesting 🌾 Wheat"


def test_emoji_needs_whole_words():
    assert add_farming_emojis("Cornwall cowboys watered the cornfield") == (
        "Cornwall cowboys watered the cornfield"
    )


def test_emoji_noop_without_target_nouns():
    text = "Rotate your beans with sorghum every season."
    assert add_farming_emojis(text) == text
    assert add_farming_emojis(add_farming_emojis(text)) == text


def test_format_response_pipeline_order():
    raw = "Assistant: Apply lime.\n\n\n\nThen wait."
    formatted = format_response(raw, "How do I raise the pH of my soil?")
    assert formatted == "Apply lime.\n\nThen wait. " + EXPANSIONS["soil"]


def test_format_response_long_reply_is_only_annotated():
    raw = "For maize in Limpopo, apply 200 kg/ha of fertilizer at planting and top-dress after six weeks."
    formatted = format_response(raw, "maize fertilizer")
    assert formatted == (
        "For 🌽 maize in Limpopo, apply 200 kg/ha of 🌿 fertilizer at planting and top-dress after six weeks."
    )


def test_expansion_is_annotated_too():
    formatted = format_response("Ok.", "Tell me about maize")
    assert formatted.startswith("Ok. 🌱 For optimal crop management")
    assert "💧 irrigation" in formatted


def test_template_floor_replaces_tiny_reply():
    formatted = format_response("Ok.", "Tell me about maize", template_floor=True)
    assert formatted == TEMPLATES["crop"]


def test_template_floor_keeps_replies_of_twenty_chars():
    formatted = format_response("Plant after the rain.", "Tell me about maize", template_floor=True)
    assert formatted.startswith("Plant after the rain. 🌱")


def test_explicit_category_overrides_detection():
    formatted = format_response("Sell now.", "Tell me about maize", category="market")
    assert formatted == "Sell now. " + EXPANSIONS["market"]
