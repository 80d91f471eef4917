from fastapi.testclient import TestClient

from lumi.main import app


def test_root_lists_endpoints():
    client = TestClient(app)

    response = client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Lumi Learning Coach API"
    assert body["endpoints"]["mcp_request"] == "/mcp/request"
    assert "X-Process-Time-Ms" in response.headers


def test_email_health_is_mounted():
    response = TestClient(app).get("/health")
    assert response.json()["service"] == "Email Service"
