"""
test/test_api_route.py
HTTP 라우트 테스트 (TestClient + 인메모리 저장소)
"""
import pytest
from fastapi.testclient import TestClient

from deckshare.catalog import get_catalog
from deckshare.main import app
from deckshare.services.presentation import get_presentation_service

from conftest import SHARE_ORIGIN


@pytest.fixture
def client(service, bundled_catalog):
    app.dependency_overrides[get_presentation_service] = lambda: service
    app.dependency_overrides[get_catalog] = lambda: bundled_catalog
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create(client, template_id="demo", customization=None):
    response = client.post(
        "/v1/instances/",
        json={"templateId": template_id, "customization": customization or {}},
    )
    assert response.status_code == 201, response.text
    return response.json()


# ============================================================
# 템플릿
# ============================================================
class TestTemplates:
    def test_list(self, client):
        response = client.get("/v1/templates/")
        assert response.status_code == 200
        templates = {t["id"]: t for t in response.json()["templates"]}
        assert templates["demo"]["slideCount"] == 2
        assert "omega-balance-plus" in templates

    def test_detail(self, client):
        response = client.get("/v1/templates/omega-balance")
        assert response.status_code == 200
        body = response.json()
        assert body["slides"][0]["id"] == "slide-1"

    def test_detail_missing(self, client):
        assert client.get("/v1/templates/nope").status_code == 404


# ============================================================
# 인스턴스 생성
# ============================================================
class TestCreateInstance:
    def test_create(self, client):
        body = _create(client, customization={"recipientName": "Ana"})
        assert body["instanceId"]
        assert len(body["token"]) == 12
        assert body["link"] == f"{SHARE_ORIGIN}/view/{body['token']}"

    def test_unknown_template(self, client):
        response = client.post("/v1/instances/", json={"templateId": "nope", "customization": {}})
        assert response.status_code == 404

    def test_invalid_customization(self, client):
        response = client.post(
            "/v1/instances/",
            json={"templateId": "demo", "customization": {"level": "weird"}},
        )
        assert response.status_code == 422
        assert response.json()["detail"]["errors"]

    def test_missing_template_id(self, client):
        assert client.post("/v1/instances/", json={"customization": {}}).status_code == 422


# ============================================================
# 열람
# ============================================================
class TestView:
    def test_open(self, client):
        created = _create(client, customization={"recipientName": "Ana"})
        response = client.get(f"/v1/view/{created['token']}")
        assert response.status_code == 200
        body = response.json()
        assert body["firstSlideId"] == "s1"
        assert body["status"] == "viewed"
        assert body["templateId"] == "demo"
        assert body["presentation"]["slides"][0]["title"] == "Hello Ana"

    def test_open_unknown(self, client):
        assert client.get("/v1/view/ABCDEF123456").status_code == 404

    def test_next_with_branch(self, client):
        created = _create(client, template_id="omega-balance")
        response = client.post(
            f"/v1/view/{created['token']}/next",
            json={"currentSlideId": "slide-2", "answer": "No"},
        )
        assert response.status_code == 200
        assert response.json() == {"nextSlideId": "slide-6-apology", "terminal": False, "requiresInput": False}

    def test_next_unknown_slide(self, client):
        created = _create(client)
        response = client.post(f"/v1/view/{created['token']}/next", json={"currentSlideId": "zz"})
        assert response.status_code == 422

    def test_complete_flow(self, client):
        created = _create(
            client,
            customization={
                "level": "advanced",
                "questions": [{"id": "like", "text": "Like it?", "type": "yes_no", "position": 1, "required": True}],
            },
        )
        token = created["token"]

        response = client.post(f"/v1/view/{token}/complete")
        assert response.status_code == 409
        assert response.json()["detail"]["missing"] == ["Like it?"]

        client.post(f"/v1/view/{token}/next", json={"currentSlideId": "question-like", "answer": "yes"})
        response = client.post(f"/v1/view/{token}/complete")
        assert response.status_code == 200
        assert response.json() == {"completed": True, "missing": []}


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
