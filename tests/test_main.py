from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from voice_relay.main import app, create_router, registry, settings

client = TestClient(app)


def test_health_check():
    """Test the health check endpoint returns correct response"""
    response = client.get("/health")
    assert response.status_code == 200

    response_json = response.json()
    assert response_json["status"] == "healthy"
    assert isinstance(response_json["api_key_configured"], bool)
    assert isinstance(response_json["agent_configured"], bool)
    assert response_json["active_sessions"] == 0


def test_root_endpoint():
    """Test the root endpoint returns the service information"""
    response = client.get("/")
    assert response.status_code == 200

    response_json = response.json()
    assert response_json["name"] == "Voice Relay"
    assert response_json["version"] == "1.0.0"
    assert "/health" in response_json["endpoints"]
    assert "/sessions" in response_json["endpoints"]


def test_sessions_lists_active_sessions():
    session = MagicMock()
    session.describe.return_value = {"channel_id": "chan-9", "link_open": True}
    registry.reserve("chan-9")
    registry.activate("chan-9", session)
    try:
        response = client.get("/sessions")
        assert response.status_code == 200
        assert response.json() == {"sessions": [{"channel_id": "chan-9", "link_open": True}]}
        assert client.get("/health").json()["active_sessions"] == 1
    finally:
        registry.release("chan-9")


def test_create_router_shares_registry():
    router = create_router(MagicMock())
    assert router.registry is registry
    assert router.settings is settings
