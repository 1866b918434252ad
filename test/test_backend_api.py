"""Tests for the backend HTTP surface"""

import pytest
from fastapi.testclient import TestClient

from backend.config import AppSettings
from backend.api.oauth import require_loopback
from backend.main import create_app, resolve_frontend_file
from deeplink import DeepLinkRelay


@pytest.fixture
def relay():
  return DeepLinkRelay()


@pytest.fixture
def client(relay):
  app = create_app(relay, AppSettings())
  with TestClient(app) as c:
    yield c


def test_health(client):
  response = client.get("/health")
  assert response.status_code == 200
  assert response.json()["status"] == "healthy"


def test_root_in_api_only_mode(client):
  assert client.get("/").json()["message"] == "SongBuddy API"


def test_status_reports_pending_uri(client, relay):
  response = client.get("/api/oauth/status")
  assert response.json() == {
    "channel": "songbuddy/oauth",
    "subscribed": False,
    "pending": False,
  }

  relay.on_uri_received("songbuddy://callback?code=abc")

  assert client.get("/api/oauth/status").json()["pending"] is True


def test_status_reports_subscriber(client, relay):
  relay.attach(lambda uri: None)
  assert client.get("/api/oauth/status").json()["subscribed"] is True


def test_missing_relay_is_reported_as_app_error(client):
  client.app.state.relay = None

  response = client.get("/api/oauth/status")

  assert response.status_code == 503
  body = response.json()
  assert body["name"] == "RELAY_NOT_CONFIGURED"
  assert body["source"] == "deeplink"


def test_frontend_is_served(tmp_path, relay):
  (tmp_path / "index.html").write_text("<html>songbuddy</html>")
  (tmp_path / "assets").mkdir()
  (tmp_path / "assets" / "app.js").write_text("console.log(1)")

  app = create_app(relay, frontend_path=tmp_path)
  with TestClient(app) as c:
    assert c.get("/assets/app.js").text == "console.log(1)"
    assert "songbuddy" in c.get("/some/spa/route").text


def test_shutdown_detaches_listener(relay):
  app = create_app(relay)
  with TestClient(app):
    relay.attach(lambda uri: None)
  assert not relay.has_subscriber


def test_redirect_handoff_refused_for_non_local_client(client, relay):
  # TestClient reports its peer as "testclient", which is not loopback
  response = client.post("/api/oauth/redirect", json={"uri": "songbuddy://callback?code=abc"})

  assert response.status_code == 403
  assert response.json()["name"] == "REDIRECT_NOT_LOCAL"
  assert relay.pending_uri is None


def test_redirect_handoff_feeds_relay(client, relay):
  client.app.dependency_overrides[require_loopback] = lambda: None

  accepted = client.post("/api/oauth/redirect", json={"uri": "songbuddy://callback?code=abc"})
  ignored = client.post("/api/oauth/redirect", json={"uri": "https://example.com/"})

  assert accepted.json() == {"accepted": True}
  assert ignored.json() == {"accepted": False}
  assert relay.pending_uri == "songbuddy://callback?code=abc"


def test_unknown_route_uses_app_error_body(client):
  response = client.get("/api/oauth/missing")

  assert response.status_code == 404
  body = response.json()
  assert body["name"] == "HTTP_404"
  assert body["source"] == "http"


class TestFrontendFiles:
  def test_file_inside_frontend(self, tmp_path):
    (tmp_path / "index.html").write_text("ok")
    assert resolve_frontend_file(tmp_path, "index.html") == (tmp_path / "index.html").resolve()

  def test_parent_traversal_is_refused(self, tmp_path):
    frontend = tmp_path / "frontend"
    frontend.mkdir()
    (tmp_path / "secret.txt").write_text("secret")

    assert resolve_frontend_file(frontend, "../secret.txt") is None
    assert resolve_frontend_file(frontend, str(tmp_path / "secret.txt")) is None

  def test_symlink_out_of_frontend_is_refused(self, tmp_path):
    frontend = tmp_path / "frontend"
    frontend.mkdir()
    (tmp_path / "secret.txt").write_text("secret")
    (frontend / "link.txt").symlink_to(tmp_path / "secret.txt")

    assert resolve_frontend_file(frontend, "link.txt") is None

  def test_traversal_falls_back_to_index(self, tmp_path, relay):
    frontend = tmp_path / "frontend"
    frontend.mkdir()
    (frontend / "index.html").write_text("<html>songbuddy</html>")
    (tmp_path / "secret.txt").write_text("secret")

    app = create_app(relay, frontend_path=frontend)
    with TestClient(app) as c:
      assert c.get("/%2e%2e/secret.txt").text != "secret"
