import io
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient
from openai import APIStatusError
from PIL import Image

from main import create_app
from utils.logging_config import CORRELATION_HEADER
from utils.settings import AppSettings


def reply(text="Try: 'Baked fresh at dawn'", input_tokens=40, output_tokens=20):
    part = MagicMock(type="output_text", text=text)
    item = MagicMock(type="message", content=[part])
    usage = MagicMock(input_tokens=input_tokens, output_tokens=output_tokens)
    return MagicMock(output=[item], usage=usage, output_text=text)


@pytest.fixture
def settings(tmp_path):
    return AppSettings(
        config_dir=tmp_path / "config",
        assets_dir=tmp_path / "assets",
        public_dir=tmp_path / "public",
        versions_dir=tmp_path / "versions",
        log_level="WARNING",
    )


@pytest.fixture
def openai_client():
    client = MagicMock()
    client.responses.create = AsyncMock(return_value=reply())
    client.close = AsyncMock()
    return client


@pytest.fixture
def client(store, settings, openai_client):
    # the store fixture has already seeded tmp_path/config
    app = create_app(settings=settings, openai_client=openai_client)
    with TestClient(app) as test_client:
        yield test_client


def test_health_and_correlation_id(client):
    response = client.get("/health", headers={CORRELATION_HEADER: "abc123"})
    assert response.status_code == 200
    assert response.json()["ok"] is True
    assert response.headers[CORRELATION_HEADER] == "abc123"

    generated = client.get("/health").headers[CORRELATION_HEADER]
    assert len(generated) == 32


def test_list_pages(client):
    pages = client.get("/api/pages").json()["pages"]
    assert [p["id"] for p in pages] == ["about", "home"]
    assert all(p["editing"] is False for p in pages)


def test_second_edit_is_a_conflict(client):
    first = client.post("/api/pages/home/edit")
    assert first.status_code == 200
    assert first.json()["draft"]["conversationHistory"] == []

    second = client.post("/api/pages/home/edit")
    assert second.status_code == 409


def test_unknown_page_and_missing_session_are_not_found(client):
    assert client.post("/api/pages/pricing/edit").status_code == 404
    assert client.patch("/api/pages/home/draft", json={"title": "x"}).status_code == 404
    assert client.post("/api/pages/home/ai-chat", json={"message": "hi"}).status_code == 404
    assert client.post("/api/pages/home/confirm").status_code == 404
    assert client.post("/api/pages/home/cancel").status_code == 404


def test_invalid_draft_update_is_bad_request(client):
    client.post("/api/pages/home/edit")
    response = client.patch("/api/pages/home/draft", json={"sections": "not a list"})
    assert response.status_code == 400


def test_chat_confirm_and_publish(client, settings, openai_client):
    client.post("/api/pages/home/edit")
    client.patch("/api/pages/home/draft", json={"title": "Welcome Home"})

    chat = client.post("/api/pages/home/ai-chat", json={"message": "Suggest a tagline"})
    assert chat.status_code == 200
    body = chat.json()
    assert body["tokensUsed"] == 60
    assert [m["role"] for m in body["conversationHistory"]] == ["user", "assistant"]
    openai_client.responses.create.assert_awaited_once()

    confirm = client.post("/api/pages/home/confirm")
    assert confirm.status_code == 200
    body = confirm.json()
    assert body["backupVersion"] == 1
    assert body["published"] is True
    assert body["page"]["title"] == "Welcome Home"
    assert "Welcome Home" in (settings.public_dir / "index.html").read_text(encoding="utf-8")

    status = client.get("/api/status").json()["status"]
    assert status["apiUsage"]["tokensThisMonth"] == 60
    assert status["apiUsage"]["requestsThisMinute"] == 1
    assert status["activeSessions"] == []


def test_ai_failure_maps_to_bad_gateway(client, openai_client):
    request = httpx.Request("POST", "https://api.openai.com/v1/responses")
    openai_client.responses.create.side_effect = APIStatusError(
        "bad request", response=httpx.Response(400, request=request), body=None
    )
    client.post("/api/pages/home/edit")

    response = client.post("/api/pages/home/ai-chat", json={"message": "hello"})

    assert response.status_code == 502


def test_versions_and_rollback(client):
    client.post("/api/pages/home/edit")
    client.patch("/api/pages/home/draft", json={"title": "Second"})
    client.post("/api/pages/home/confirm")

    versions = client.get("/api/pages/home/versions").json()["versions"]
    assert [v["number"] for v in versions] == [1]

    client.post("/api/pages/home/edit")
    assert client.post("/api/pages/home/rollback", json={"version": 1}).status_code == 409
    client.post("/api/pages/home/cancel")

    rolled = client.post("/api/pages/home/rollback", json={"version": 1})
    assert rolled.status_code == 200
    assert rolled.json()["page"]["title"] == "Home"
    assert client.post("/api/pages/home/rollback", json={"version": 9}).status_code == 404
    assert client.get("/api/pages/nope/versions").status_code == 404


def test_status_reports_active_sessions(client):
    client.post("/api/pages/about/edit")
    status = client.get("/api/status").json()["status"]
    assert [s["pageId"] for s in status["activeSessions"]] == ["about"]
    assert status["apiUsage"]["estimatedCost"] == 0
    assert status["diskUsage"]["total"] > 0


def test_upload_image(client):
    buffer = io.BytesIO()
    Image.new("RGB", (400, 200), color=(10, 20, 30)).save(buffer, format="JPEG")

    response = client.post(
        "/api/assets/upload",
        files={"image": ("team.jpg", buffer.getvalue(), "image/jpeg")},
        data={"altText": "Our team"},
    )

    assert response.status_code == 200
    asset = response.json()["asset"]
    assert asset["alt_text"] == "Our team"
    assert [v["width"] for v in asset["variants"]] == [320, 768, 1920]


def test_upload_rejects_unsupported_type(client):
    response = client.post(
        "/api/assets/upload",
        files={"image": ("notes.txt", b"hello", "text/plain")},
        data={"altText": "Notes"},
    )
    assert response.status_code == 400


def test_favicon_outside_assets_is_rejected(client):
    response = client.post("/api/assets/favicon", json={"logoPath": "/etc/passwd"})
    assert response.status_code == 400


def test_onboarding_builds_site(tmp_path, openai_client):
    settings = AppSettings(
        config_dir=tmp_path / "fresh-config",
        assets_dir=tmp_path / "fresh-assets",
        public_dir=tmp_path / "fresh-public",
        versions_dir=tmp_path / "fresh-versions",
        log_level="WARNING",
    )
    payload = {
        "businessName": "Harbor Bakery",
        "industry": "Bakery",
        "description": "Fresh bread daily",
        "email": "hello@harborbakery.com",
        "phone": "555-123-4567",
        "address": {"street": "12 Wharf St", "city": "Portland", "state": "ME", "zip": "04101", "country": "USA"},
        "domain": "harborbakery.com",
        "selectedPages": ["home", "menu"],
    }

    with TestClient(create_app(settings=settings, openai_client=openai_client)) as client:
        response = client.post("/api/onboarding", json=payload)
        assert response.status_code == 200
        site = response.json()["siteConfig"]
        assert [item["pageId"] for item in site["navigation"]] == ["home", "menu"]
        assert site["legalName"] == "Harbor Bakery"
        assert (settings.public_dir / "index.html").exists()
        assert (settings.public_dir / "menu.html").exists()
        assert client.get("/").status_code == 200

        bad = client.post("/api/onboarding", json={**payload, "email": "nope"})
        assert bad.status_code == 400


def test_onboarding_with_legal_pages_publishes_them(tmp_path, openai_client):
    settings = AppSettings(
        config_dir=tmp_path / "legal-config",
        assets_dir=tmp_path / "legal-assets",
        public_dir=tmp_path / "legal-public",
        versions_dir=tmp_path / "legal-versions",
        log_level="WARNING",
    )
    payload = {
        "businessName": "Harbor Bakery",
        "industry": "Bakery",
        "description": "Fresh bread daily",
        "email": "hello@harborbakery.com",
        "phone": "555-123-4567",
        "address": {"street": "12 Wharf St", "city": "Portland", "state": "ME", "zip": "04101", "country": "USA"},
        "domain": "harborbakery.com",
        "selectedPages": ["home"],
        "privacyPolicyEnabled": True,
        "termsOfServiceEnabled": True,
    }

    with TestClient(create_app(settings=settings, openai_client=openai_client)) as client:
        response = client.post("/api/onboarding", json=payload)
        assert response.status_code == 200
        site = response.json()["siteConfig"]
        assert [item["pageId"] for item in site["navigation"]] == ["home", "privacy", "terms"]
        assert sorted(response.json()["pages"]) == ["home", "privacy", "terms"]

        index = (settings.public_dir / "index.html").read_text(encoding="utf-8")
        assert 'href="/privacy.html"' in index
        assert 'href="/terms.html"' in index
        privacy = settings.public_dir / "privacy.html"
        terms = settings.public_dir / "terms.html"
        assert privacy.exists()
        assert terms.exists()
        assert "hello@harborbakery.com" in privacy.read_text(encoding="utf-8")
        assert client.get("/terms.html").status_code == 200
