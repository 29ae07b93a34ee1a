import json

import httpx
import pytest

from app.core.errors import ProviderError
from app.llm.service.provider.gemini import GeminiProvider


def candidate(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


@pytest.fixture
def provider():
    return GeminiProvider(api_key="test-key", endpoint="https://gemini.test", model="gemini-2.0-flash", timeout=5)


async def test_text_request_shape(provider, mock_http):
    requests = mock_http(lambda request: httpx.Response(200, json=candidate("Nane çayı deneyin.")))

    reply = await provider.respond_to_text("Mide ağrısı", "tr")

    assert reply == "Nane çayı deneyin."
    assert len(requests) == 1
    request = requests[0]
    assert request.method == "POST"
    assert request.url.path == "/v1beta/models/gemini-2.0-flash:generateContent"
    assert request.url.params["key"] == "test-key"

    body = json.loads(request.content)
    parts = body["contents"][0]["parts"]
    assert len(parts) == 1
    assert parts[0]["text"].endswith("Kullanıcı sorusu: Mide ağrısı")
    assert body["generationConfig"] == {"temperature": 0.7, "topK": 40, "topP": 0.95, "maxOutputTokens": 1024}
    assert {s["category"] for s in body["safetySettings"]} == {
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    }
    assert {s["threshold"] for s in body["safetySettings"]} == {"BLOCK_MEDIUM_AND_ABOVE"}


async def test_image_request_includes_inline_jpeg(provider, mock_http):
    requests = mock_http(lambda request: httpx.Response(200, json=candidate("Bu bir ıhlamur yaprağı.")))

    reply = await provider.respond_to_image("aW1hZ2U=", "Bu nedir?", "en")

    assert reply == "Bu bir ıhlamur yaprağı."
    parts = json.loads(requests[0].content)["contents"][0]["parts"]
    assert parts[0]["text"].startswith("You are DoktorAi")
    assert parts[1] == {"inline_data": {"mime_type": "image/jpeg", "data": "aW1hZ2U="}}


async def test_missing_key_fails_without_network(mock_http):
    requests = mock_http(lambda request: httpx.Response(200, json=candidate("unused")))
    provider = GeminiProvider(api_key="", endpoint="https://gemini.test")

    assert provider.is_enabled() is False
    with pytest.raises(ProviderError):
        await provider.respond_to_text("Merhaba", "tr")
    assert requests == []


async def test_error_status_raises(provider, mock_http):
    mock_http(lambda request: httpx.Response(429, json={"error": {"message": "quota"}}))

    with pytest.raises(ProviderError) as exc_info:
        await provider.respond_to_text("Merhaba", "tr")
    assert exc_info.value.status_code == 429


@pytest.mark.parametrize(
    "body",
    [{}, {"candidates": []}, {"candidates": [{"finishReason": "SAFETY"}]}, {"candidates": [{"content": {"parts": []}}]}],
)
async def test_response_without_text_raises(provider, mock_http, body):
    mock_http(lambda request: httpx.Response(200, json=body))

    with pytest.raises(ProviderError):
        await provider.respond_to_text("Merhaba", "tr")


async def test_transport_error_raises_provider_error(provider, mock_http):
    def fail(request):
        raise httpx.ConnectError("connection refused", request=request)

    mock_http(fail)

    with pytest.raises(ProviderError):
        await provider.respond_to_text("Merhaba", "tr")
