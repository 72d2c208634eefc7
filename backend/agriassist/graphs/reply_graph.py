from loguru import logger
from langgraph.graph import StateGraph, START, END

from agriassist.agents.formatting import format_response
from agriassist.agents.llm_client import LLMClient
from agriassist.errors import AgriAssistError
from agriassist.models.state import ReplyState

PRIMARY_CONFIDENCE = 0.9
FALLBACK_CONFIDENCE = 0.7


def build_reply_graph(llm: LLMClient):
    """Build the per-message reply graph.

    Structure:
    START → call_primary → (call_fallback if primary failed and a secondary
          model exists) → format_reply → END

    A request that fails on every attempt ends with ``error`` set and no
    ``text``; the caller raises it.
    """

    async def call_primary(state: ReplyState) -> dict:
        try:
            raw = await llm.complete(state["prompt"], model=state["model"])
        except AgriAssistError as e:
            logger.warning("[reply] Primary model {} failed: {}", state["model"], e)
            return {"raw_text": None, "error": e, "attempts": 1}
        return {"raw_text": raw, "error": None, "attempts": 1, "used_fallback": False}

    async def call_fallback(state: ReplyState) -> dict:
        model = state["fallback_model"]
        logger.info("[reply] Retrying once with secondary model {}", model)
        try:
            raw = await llm.complete(state["prompt"], model=model)
        except AgriAssistError as e:
            logger.error("[reply] Secondary model {} failed: {}", model, e)
            return {"raw_text": None, "error": e, "attempts": state.get("attempts", 1) + 1}
        return {
            "raw_text": raw,
            "error": None,
            "attempts": state.get("attempts", 1) + 1,
            "used_fallback": True,
        }

    def format_reply(state: ReplyState) -> dict:
        used_fallback = state.get("used_fallback", False)
        text = format_response(
            state["raw_text"],
            state["message"],
            category=state["category"],
            template_floor=used_fallback,
        )
        return {
            "text": text,
            "confidence": FALLBACK_CONFIDENCE if used_fallback else PRIMARY_CONFIDENCE,
        }

    def after_primary(state: ReplyState) -> str:
        if state.get("raw_text"):
            return "format_reply"
        if state.get("fallback_model"):
            return "call_fallback"
        return "failed"

    def after_fallback(state: ReplyState) -> str:
        return "format_reply" if state.get("raw_text") else "failed"

    builder = StateGraph(ReplyState)

    builder.add_node("call_primary", call_primary)
    builder.add_node("call_fallback", call_fallback)
    builder.add_node("format_reply", format_reply)

    builder.add_edge(START, "call_primary")
    builder.add_conditional_edges(
        "call_primary",
        after_primary,
        {"format_reply": "format_reply", "call_fallback": "call_fallback", "failed": END},
    )
    builder.add_conditional_edges(
        "call_fallback",
        after_fallback,
        {"format_reply": "format_reply", "failed": END},
    )
    builder.add_edge("format_reply", END)

    return builder.compile()
