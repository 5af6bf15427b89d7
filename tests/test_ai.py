from civicsense.services.ai_plugin import MockAIProvider, get_ai_registry
from civicsense.services.ai_plugin.gemini_provider import GeminiAIProvider
from civicsense.services.ai_plugin.mock_provider import MOCK_IMAGE_ANALYSES, simple_hash

FENCED_ANALYSIS = (
    "```json\n"
    '{"issue_type": "safety", "severity": "extreme", "confidence": 140, '
    '"suggested_title": "Loose cable", "short_desc": "Cable hanging low"}\n'
    "```"
)


def test_analyze_image_uses_mock_provider(client):
    response = client.post("/ai/analyze-image", json={"media_url": "/uploads/pothole.jpg"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["meta"]["provider"] == "Mock Service"
    assert body["meta"]["model_name"] == "mock-civic-v1"
    expected = MOCK_IMAGE_ANALYSES[simple_hash("/uploads/pothole.jpg") % len(MOCK_IMAGE_ANALYSES)]
    assert body["data"] == expected


def test_mock_analysis_is_deterministic():
    provider = MockAIProvider()
    first = provider.analyze_image("/uploads/a.png").data
    assert provider.analyze_image("/uploads/a.png").data == first
    assert 0 <= first["confidence"] <= 100


def test_simple_hash_wraps_to_32_bits():
    assert simple_hash("") == 0
    assert simple_hash("a") == 97
    assert simple_hash("ab") == 97 * 31 + 98
    assert simple_hash("x" * 1000) < 2 ** 31 + 1


def test_generate_description(client):
    response = client.post(
        "/ai/generate-description", json={"media_url": "/uploads/a.png", "short_text": "hole in road"},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["short_description"]
    assert data["long_description"]


def test_transcribe(client):
    response = client.post("/ai/transcribe", json={"audio_url": "/uploads/note.webm"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["text"]
    assert data["language"]


def test_missing_urls(client):
    assert client.post("/ai/analyze-image", json={}).json()["detail"] == "Media URL is required"
    assert client.post("/ai/generate-description", json={}).status_code == 400
    response = client.post("/ai/transcribe", json={})
    assert response.status_code == 400
    assert response.json()["detail"] == "Audio URL is required"


def test_ai_status(client):
    body = client.get("/ai/status").json()
    assert body["success"] is True
    assert body["data"]["configured"] is False
    assert body["data"]["provider"] == "Mock Service"
    assert body["data"]["providers"] == ["mock"]
    assert "image-analysis" in body["data"]["features"]


def test_gemini_failure_falls_back_to_mock(monkeypatch):
    registry = get_ai_registry()
    gemini = GeminiAIProvider()
    gemini.enabled = True

    def boom(*args):
        raise RuntimeError("quota exceeded")

    monkeypatch.setattr(gemini, "analyze_image", boom)
    registry.providers.insert(0, gemini)

    response = registry.analyze_image("/uploads/a.png")
    assert response.provider == "mock"
    assert registry.real_provider_configured is True


def test_gemini_response_parsing(monkeypatch):
    gemini = GeminiAIProvider()
    gemini.enabled = True
    monkeypatch.setattr(gemini, "_call_gemini_api", lambda prompt, media_url: FENCED_ANALYSIS)

    response = gemini.analyze_image("https://example.com/cable.jpg")
    assert response.error is None
    assert response.data["issue_type"] == "safety"
    assert response.data["severity"] == "medium"
    assert response.data["confidence"] == 100
