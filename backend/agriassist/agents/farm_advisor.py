import httpx
from loguru import logger
from langchain_core.messages import HumanMessage, SystemMessage

from agriassist.agents.categories import detect_category
from agriassist.agents.llm_client import LLMClient
from agriassist.errors import EmptyResponse, ServiceNotAvailable
from agriassist.graphs.reply_graph import build_reply_graph
from agriassist.models.schemas import ChatContext, ChatReply
from agriassist.services.providers import ProviderConfig, key_status

SYSTEM_PROMPT = """You are AgriAssist, an expert AI agricultural assistant specializing in South African farming. You provide practical, actionable advice for farmers in a conversational and helpful manner.

Your expertise includes:
- Crop management and cultivation (maize, wheat, tomatoes, potatoes, etc.)
- Livestock health and breeding (cattle, sheep, goats, chickens)
- Pest and disease control using IPM approaches
- Soil management and fertilization for South African conditions
- Weather-based farming decisions and climate adaptation
- Market prices and agricultural economics in South Africa
- Government schemes and funding opportunities
- Sustainable farming practices and water conservation

Response Guidelines:
- Provide specific, actionable advice tailored to South African conditions
- Use local context (climate zones, seasonal patterns, local suppliers)
- Include practical tips with specific measurements and timings
- Mention relevant products, suppliers, or contacts when helpful
- Be concise but comprehensive (aim for 150-250 words)
- Use appropriate farming terminology
- Consider local seasons (summer: Dec-Feb, winter: Jun-Aug)
- Be encouraging and supportive
- Include relevant emojis for better readability
- Focus on cost-effective solutions for small to medium farmers
"""

CLOSING_LINE = (
    "Always respond as a knowledgeable South African farming expert would, "
    "with practical solutions that farmers can implement immediately."
)

_PROFILE_FIELDS = ("location", "farm_size", "primary_crops", "language")


def build_system_prompt(context: ChatContext) -> str:
    lines = [SYSTEM_PROMPT]
    if context.category:
        lines.append(f"Primary focus area: {context.category}")
    if context.farm_data:
        lines.append("Reference data available from similar farms")

    prefs = context.user_preferences or {}
    profile_items = []
    for field in _PROFILE_FIELDS:
        value = prefs.get(field)
        if isinstance(value, list):
            value = ", ".join(str(v) for v in value if v)
        if value:
            profile_items.append(f"{field}={value}")
    if profile_items:
        lines.append("Farmer profile: " + "; ".join(profile_items))

    lines.append("")
    lines.append(CLOSING_LINE)
    return "\n".join(lines)


class FarmAdvisor:
    """Generates chat replies for farmers.

    Built once at startup and injected where needed. With no provider the
    advisor is unavailable and every call fails before any network I/O.
    """

    def __init__(self, provider: ProviderConfig | None, client: httpx.AsyncClient):
        self.provider = provider
        self._graph = build_reply_graph(LLMClient(provider, client)) if provider else None

    @property
    def available(self) -> bool:
        return self.provider is not None

    def provider_info(self) -> str:
        return self.provider.label if self.provider else "Not configured"

    def api_key_status(self) -> str:
        return self.provider.key_status() if self.provider else key_status(None)

    async def generate_response(self, message: str, context: ChatContext | None = None) -> ChatReply:
        if self._graph is None:
            raise ServiceNotAvailable("AI service")

        context = context or ChatContext()
        category = detect_category(message)
        prompt = [
            SystemMessage(content=build_system_prompt(context)),
            HumanMessage(content=message),
        ]
        logger.info("[advisor] Generating reply (category={}, model={})", category, self.provider.model)

        result = await self._graph.ainvoke({
            "message": message,
            "category": category,
            "prompt": prompt,
            "model": self.provider.model,
            "fallback_model": self.provider.fallback_model,
            "raw_text": None,
            "used_fallback": False,
            "attempts": 0,
            "error": None,
        })

        if not result.get("text"):
            error = result.get("error") or EmptyResponse()
            logger.error("[advisor] AI generation error after {} attempt(s): {}", result.get("attempts", 0), error)
            raise error

        return ChatReply(text=result["text"], confidence=result["confidence"], category=category)
