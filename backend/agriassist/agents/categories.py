"""Keyword category detection for farmer questions."""

GENERAL = "general"

# Scan order matters: the first category with any keyword hit wins.
CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "crop": (
        "crop", "plant", "seed", "harvest", "grow", "maize", "wheat", "tomato",
        "potato", "vegetable", "fruit", "planting", "growing",
    ),
    "livestock": (
        "cattle", "cow", "sheep", "goat", "chicken", "livestock", "animal", "pig",
        "poultry", "breeding", "feeding",
    ),
    "pest": (
        "pest", "disease", "insect", "bug", "fungus", "rot", "blight", "aphid",
        "worm", "virus", "infection",
    ),
    "weather": (
        "weather", "rain", "drought", "temperature", "climate", "frost", "wind",
        "storm", "season",
    ),
    "market": (
        "price", "market", "sell", "buy", "profit", "cost", "demand", "supply",
        "export", "income",
    ),
    "soil": (
        "soil", "fertilizer", "compost", "nutrients", "ph", "organic", "nitrogen",
        "phosphorus", "potassium",
    ),
}

CATEGORIES = (*CATEGORY_KEYWORDS, GENERAL)

# Appended to replies that come back too short
EXPANSIONS: dict[str, str] = {
    "crop": "🌱 For optimal crop management, consider soil testing, proper irrigation scheduling, and integrated pest management practices. Monitor your crops regularly for early problem detection.",
    "livestock": "🐄 Ensure regular health checkups, proper nutrition, and maintain clean living conditions for your livestock. Prevention is always better than treatment.",
    "weather": "🌦️ Monitor weather patterns closely and adjust farming activities accordingly. Consider climate-smart agriculture practices to build resilience.",
    "market": "💰 Stay updated with market trends and consider value-addition opportunities to maximize profits. Direct marketing can often yield better prices.",
    "pest": "🐛 Implement integrated pest management (IPM) combining biological, cultural, and chemical controls. Early detection and prevention are key.",
    "soil": "🌾 Regular soil testing and organic matter addition are essential for maintaining soil health and productivity. Healthy soil equals healthy crops.",
}
GENERIC_EXPANSION = (
    "Consider consulting with local agricultural extension services for "
    "personalized advice specific to your area."
)

# Replace a near-empty reply from the secondary model outright
TEMPLATES: dict[str, str] = {
    "crop": "🌱 Plant at the start of the rains, use certified seed suited to your region, and keep fields weeded during the first six weeks of growth.",
    "livestock": "🐄 Keep vaccinations and dipping up to date, provide clean water daily, and supplement grazing with licks during the dry winter months.",
    "pest": "🐛 Scout your fields twice a week, identify the pest before spraying, and rotate chemical groups to prevent resistance.",
    "weather": "🌦️ Check the 5-day forecast before planting or spraying, and protect seedlings when frost is expected between June and August.",
    "market": "💰 Compare prices at local fresh produce markets and cooperatives before selling, and keep records of your input costs per hectare.",
    "soil": "🌾 Take a soil sample every two to three years, correct pH with agricultural lime, and add compost to build organic matter.",
}


def detect_category(message: str) -> str:
    """Return the first category whose keywords occur anywhere in ``message``.

    Matching is a lower-cased substring test, so "growing" and "grower" both
    hit "grow". Messages with no hit are ``general``.
    """
    lowered = message.lower()
    for category, words in CATEGORY_KEYWORDS.items():
        if any(word in lowered for word in words):
            return category
    return GENERAL


def expansion_for(category: str) -> str:
    return EXPANSIONS.get(category, GENERIC_EXPANSION)


def template_for(category: str) -> str:
    return TEMPLATES.get(category, GENERIC_EXPANSION)
