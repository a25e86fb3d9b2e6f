"""
Integration tests for the FastAPI preview server.
Requires: No external services (uses TestClient over an in-memory document).
"""
import csv
import io

import pytest
from fastapi.testclient import TestClient

from beatkit.api.app import VERSION, create_app
from beatkit.api.workspace import Workspace
from tests.conftest import CUE_SCRIPT, SAMPLE_SCRIPT, make_host, write_document


@pytest.fixture
def workspace():
    return Workspace(make_host(SAMPLE_SCRIPT + "\n" + CUE_SCRIPT))


@pytest.fixture
def client(workspace):
    return TestClient(create_app(workspace))


def _pill_names(state: dict) -> set[str]:
    return {p["name"] for p in state["favorites"] + state["others"]}


@pytest.mark.integration
class TestHealthEndpoint:
    def test_health_returns_ok(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "version": VERSION}


@pytest.mark.integration
class TestKeywordsEndpoints:
    def test_panel_html(self, client):
        resp = client.get("/keywords")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        assert "mystery" in resp.text

    def test_state(self, client):
        resp = client.get("/keywords/state")
        assert resp.status_code == 200
        assert _pill_names(resp.json()) == {"mystery", "jonah"}

    def test_add_favorite(self, client):
        resp = client.post("/keywords/call", json={"method": "add_favorite", "args": ["mystery"]})
        assert resp.status_code == 200
        favorites = resp.json()["state"]["favorites"]
        assert [p["name"] for p in favorites] == ["mystery"]

    def test_navigate_scrolls_host(self, client, workspace):
        resp = client.post("/keywords/call", json={"method": "navigate", "args": ["mystery"]})
        assert resp.status_code == 200
        assert resp.json()["result"]["kind"] == "document"
        assert workspace.host.scrolls == [SAMPLE_SCRIPT.index("#mystery")]

    def test_toggle_theme(self, client):
        before = client.get("/keywords/state").json()["theme"]
        resp = client.post("/keywords/call", json={"method": "toggle_theme"})
        assert resp.status_code == 200
        assert resp.json()["state"]["theme"] != before

    def test_unknown_method_rejected(self, client, workspace):
        resp = client.post("/keywords/call", json={"method": "close"})
        assert resp.status_code == 400
        assert not workspace.session.closed

    def test_bad_arguments_rejected(self, client):
        resp = client.post("/keywords/call", json={"method": "navigate", "args": []})
        assert resp.status_code == 400

    def test_refresh_picks_up_edits(self, client, workspace):
        workspace.host.add_string("[[#fresh]]\n", 0)
        resp = client.post("/keywords/refresh")
        assert resp.status_code == 200
        assert resp.json()["refreshed"] is True
        assert "fresh" in _pill_names(resp.json()["state"])


@pytest.mark.integration
class TestCueEndpoints:
    def test_list(self, client):
        resp = client.get("/cues")
        assert resp.status_code == 200
        data = resp.json()
        assert data["types"] == ["SOUND", "LIGHT", "MUSIC", "VIDEO"]
        assert data["filter_type"] == "ALL"
        assert len(data["cues"]) == 5

    def test_list_filtered(self, client):
        data = client.get("/cues", params={"type": "LIGHT"}).json()
        assert [c["name"] for c in data["cues"]] == ["Blackout"]

    def test_export_csv(self, client):
        resp = client.get("/cues/export/csv")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        rows = list(csv.reader(io.StringIO(resp.text)))
        assert len(rows) == 6

    def test_export_qlab(self, client):
        resp = client.get("/cues/export/qlab", params={"type": "SOUND"})
        assert resp.status_code == 200
        assert 'tell application "QLab"' in resp.text

    def test_export_unknown_format_404(self, client):
        assert client.get("/cues/export/pdf").status_code == 404

    def test_export_empty_filter_404(self, client):
        assert client.get("/cues/export/csv", params={"type": "SMOKE"}).status_code == 404


@pytest.mark.integration
class TestWorkspaceFromConfig:
    def test_no_document_configured_503(self):
        client = TestClient(create_app())
        assert client.get("/keywords/state").status_code == 503

    def test_missing_document_503(self, monkeypatch, tmp_path):
        monkeypatch.setenv("BEATKIT_DOCUMENT_PATH", str(tmp_path / "missing.fountain"))
        client = TestClient(create_app())
        assert client.get("/cues").status_code == 503

    def test_opens_configured_document(self, monkeypatch, tmp_path):
        path = write_document(tmp_path, SAMPLE_SCRIPT)
        monkeypatch.setenv("BEATKIT_DOCUMENT_PATH", str(path))
        app = create_app()
        with TestClient(app) as client:
            assert _pill_names(client.get("/keywords/state").json()) == {"mystery", "jonah"}
            workspace = app.state.workspace
        assert workspace.session.closed
