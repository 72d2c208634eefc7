"""Chat reply generation: availability gate, provider calls, secondary model and formatting."""

import json

import httpx
import pytest

from agriassist.agents.categories import TEMPLATES
from agriassist.agents.farm_advisor import FarmAdvisor, build_system_prompt
from agriassist.errors import EmptyResponse, ProviderRequestFailed, ServiceNotAvailable
from agriassist.models.schemas import ChatContext
from agriassist.services.providers import EndpointShape, Provider, ProviderConfig

from conftest import mock_client, run

QUESTION = "What fertilizer should I use for maize?"

OPENAI = ProviderConfig(
    provider=Provider.OPENAI,
    api_key="sk-test-0123456789abcdef",
    base_url="https://api.openai.test/v1",
    model="gpt-3.5-turbo",
    shape=EndpointShape.CHAT,
)

HUGGINGFACE = ProviderConfig(
    provider=Provider.HUGGINGFACE,
    api_key="hf_test_0123456789abcdef",
    base_url="https://hf.test/models",
    model="mistralai/Mistral-7B-Instruct-v0.2",
    shape=EndpointShape.TEXT_GENERATION,
    fallback_model="google/flan-t5-large",
)

LONG_ANSWER = (
    "Assistant: For maize on sandy soils in the Free State, apply a 2:3:2 (22) "
    "at planting and top-dress with LAN six weeks later.\n\n\n\nAlways test your soil first."
)


def _chat_response(content):
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


def test_unavailable_provider_fails_before_any_request(recorder):
    advisor = FarmAdvisor(None, mock_client(recorder))

    with pytest.raises(ServiceNotAvailable) as exc:
        run(advisor.generate_response(QUESTION))

    assert "not available" in str(exc.value)
    assert recorder.requests == []
    assert advisor.available is False
    assert advisor.provider_info() == "Not configured"
    assert advisor.api_key_status() == "Not configured"


def test_chat_completion_request_and_reply(recorder):
    recorder.queue(_chat_response(LONG_ANSWER))
    advisor = FarmAdvisor(OPENAI, mock_client(recorder))

    reply = run(advisor.generate_response(QUESTION))

    request = recorder.requests[0]
    assert str(request.url) == "https://api.openai.test/v1/chat/completions"
    assert request.headers["Authorization"] == f"Bearer {OPENAI.api_key}"
    body = json.loads(request.content)
    assert body["model"] == "gpt-3.5-turbo"
    assert body["max_tokens"] == 300
    assert body["temperature"] == 0.7
    assert body["top_p"] == 0.9
    assert body["frequency_penalty"] == 0.1
    assert body["presence_penalty"] == 0.1
    assert body["messages"][0]["role"] == "system"
    assert "South African farming" in body["messages"][0]["content"]
    assert body["messages"][1] == {"role": "user", "content": QUESTION}

    assert reply.confidence == 0.9
    assert reply.category == "crop"
    assert reply.text.startswith("For 🌽 maize on sandy soils")
    assert "\n\n\n" not in reply.text
    assert "Assistant:" not in reply.text


def test_category_comes_from_question_not_reply(recorder):
    recorder.queue(_chat_response("Sheep and cattle prices are up this month at most auctions."))
    advisor = FarmAdvisor(OPENAI, mock_client(recorder))

    reply = run(advisor.generate_response("How do I raise the pH of acidic soil?"))

    assert reply.category == "soil"
    assert "🐑 Sheep" in reply.text and "🐄 cattle" in reply.text


def test_context_is_advisory_text_in_system_prompt(recorder):
    recorder.queue(_chat_response(LONG_ANSWER))
    advisor = FarmAdvisor(OPENAI, mock_client(recorder))
    context = ChatContext(
        category="soil",
        farm_data=[{"farm": "A", "yield_t_ha": 4.2}],
        user_preferences={"location": "Limpopo", "primary_crops": ["maize", "beans"]},
    )

    reply = run(advisor.generate_response(QUESTION, context))

    system = json.loads(recorder.requests[0].content)["messages"][0]["content"]
    assert "Primary focus area: soil" in system
    assert "Reference data available from similar farms" in system
    assert "Farmer profile: location=Limpopo; primary_crops=maize, beans" in system
    assert reply.category == "crop", "context category does not override detection"


def test_system_prompt_without_context():
    prompt = build_system_prompt(ChatContext())
    assert "Primary focus area" not in prompt
    assert "Farmer profile" not in prompt
    assert prompt.rstrip().endswith("implement immediately.")


def test_http_error_surfaces(recorder):
    recorder.queue(httpx.Response(429, json={"error": {"message": "rate limited"}}))
    advisor = FarmAdvisor(OPENAI, mock_client(recorder))

    with pytest.raises(ProviderRequestFailed) as exc:
        run(advisor.generate_response(QUESTION))

    assert exc.value.status_code == 429
    assert len(recorder.requests) == 1, "no secondary model configured, no retry"


def test_transport_error_surfaces(recorder):
    recorder.queue(httpx.ConnectError("connection refused"))
    advisor = FarmAdvisor(OPENAI, mock_client(recorder))

    with pytest.raises(ProviderRequestFailed):
        run(advisor.generate_response(QUESTION))


def test_empty_text_surfaces(recorder):
    recorder.queue(_chat_response("   "))
    advisor = FarmAdvisor(OPENAI, mock_client(recorder))

    with pytest.raises(EmptyResponse):
        run(advisor.generate_response(QUESTION))


def test_text_generation_request_shape(recorder):
    recorder.queue(httpx.Response(200, json=[{"generated_text": LONG_ANSWER}]))
    advisor = FarmAdvisor(HUGGINGFACE, mock_client(recorder))

    reply = run(advisor.generate_response(QUESTION))

    request = recorder.requests[0]
    assert str(request.url) == "https://hf.test/models/mistralai/Mistral-7B-Instruct-v0.2"
    body = json.loads(request.content)
    assert body["inputs"].startswith("System: You are AgriAssist")
    assert f"User: {QUESTION}" in body["inputs"]
    assert body["inputs"].endswith("Assistant:")
    assert body["parameters"] == {
        "max_new_tokens": 300,
        "temperature": 0.7,
        "top_p": 0.9,
        "repetition_penalty": 1.1,
        "return_full_text": False,
        "do_sample": True,
    }
    assert reply.confidence == 0.9
    assert len(recorder.requests) == 1


def test_secondary_model_is_tried_once(recorder):
    recorder.queue(
        httpx.Response(503, json={"error": "Model is loading"}),
        httpx.Response(200, json={"generated_text": "Use 2:3:2 at planting, then top-dress with LAN."}),
    )
    advisor = FarmAdvisor(HUGGINGFACE, mock_client(recorder))

    reply = run(advisor.generate_response(QUESTION))

    assert [r.url.path for r in recorder.requests] == [
        "/models/mistralai/Mistral-7B-Instruct-v0.2",
        "/models/google/flan-t5-large",
    ]
    assert reply.confidence == 0.7
    assert reply.category == "crop"
    assert reply.text.startswith("Use 2:3:2 at planting, then top-dress with LAN. 🌱")


def test_tiny_secondary_reply_becomes_template(recorder):
    recorder.queue(
        httpx.Response(500),
        httpx.Response(200, json=[{"generated_text": "Maize."}]),
    )
    advisor = FarmAdvisor(HUGGINGFACE, mock_client(recorder))

    reply = run(advisor.generate_response(QUESTION))

    assert reply.text == TEMPLATES["crop"]
    assert reply.confidence == 0.7


def test_secondary_failure_surfaces_after_two_attempts(recorder):
    recorder.queue(httpx.Response(500), httpx.Response(200, json=[{"generated_text": ""}]))
    advisor = FarmAdvisor(HUGGINGFACE, mock_client(recorder))

    with pytest.raises(EmptyResponse):
        run(advisor.generate_response(QUESTION))

    assert len(recorder.requests) == 2


def test_provider_info(recorder):
    advisor = FarmAdvisor(HUGGINGFACE, mock_client(recorder))
    assert advisor.available
    assert advisor.provider_info() == "Hugging Face (Mistral-7B)"
    assert advisor.api_key_status() == "Configured (Alternative Provider)"
