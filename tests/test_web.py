"""
Tests for the web server — app factory, REST routes, setup stream.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from flask.testing import FlaskClient

from devenv_installer.adapters.mock import MockRuntime
from devenv_installer.core.models.progress import ProgressEvent, Step
from devenv_installer.ui.web.server import INSTALLER_EXT, STREAM_EXT, create_app


@pytest.fixture()
def app(installer):
    app = create_app(installer=installer)
    app.config["TESTING"] = True
    return app


@pytest.fixture()
def client(app) -> FlaskClient:
    return app.test_client()


def _sse_events(chunks) -> list[dict]:
    """Parse ``data:`` lines from raw SSE chunks, stopping at complete/error."""
    events = []
    for raw in chunks:
        text = raw.decode() if isinstance(raw, bytes) else raw
        if not text.startswith("data: "):
            continue
        event = json.loads(text[len("data: "):])
        events.append(event)
        if event.get("step") in ("complete", "error"):
            break
    return events


# ── App factory ─────────────────────────────────────────────────────


class TestAppFactory:
    def test_extensions(self, app, installer):
        assert app.extensions[INSTALLER_EXT] is installer
        assert STREAM_EXT in app.extensions
        assert app.config["WORK_DIR"] == str(installer.work_dir)

    def test_mock_mode_uses_scratch_hosts(self, tmp_path: Path):
        app = create_app(work_dir=tmp_path, mock_mode=True)
        installer = app.extensions[INSTALLER_EXT]
        assert isinstance(installer.runtime, MockRuntime)
        assert installer.hosts.hosts_file == tmp_path.resolve() / ".devenv-hosts"

    def test_index_without_static_dir(self, client):
        assert client.get("/").status_code == 404

    def test_index_with_static_dir(self, installer, tmp_path: Path):
        static = tmp_path / "ui"
        static.mkdir()
        (static / "index.html").write_text("<h1>installer</h1>")
        app = create_app(installer=installer, static_dir=static)
        assert b"installer" in app.test_client().get("/").data


# ── Core / docker / ssh ─────────────────────────────────────────────


class TestApiRoutes:
    def test_platform(self, client, installer):
        data = client.get("/api/platform").get_json()
        assert data["workDir"] == str(installer.work_dir)
        assert {"platform", "arch", "homeDir"} <= set(data)

    def test_shutdown(self, client):
        with patch("devenv_installer.ui.web.routes_api._schedule_shutdown") as sched:
            resp = client.post("/api/shutdown")
        assert resp.get_json() == {"success": True}
        sched.assert_called_once()


class TestDockerRoutes:
    def test_installed(self, client):
        data = client.get("/api/docker/installed").get_json()
        assert data["installed"] is True

    def test_not_running(self, client, runtime):
        runtime.running = False
        data = client.get("/api/docker/running").get_json()
        assert data == {"running": False, "error": "Docker daemon is not running"}

    def test_status(self, client):
        assert client.get("/api/docker/status").get_json() == {"containers": []}

    def test_stop(self, client, runtime):
        assert client.post("/api/docker/stop").get_json() == {"success": True}
        assert runtime.operations() == ["stop"]


class TestSshRoutes:
    def test_keys(self, client):
        data = client.get("/api/ssh/keys").get_json()
        assert data["exists"] is True
        assert data["keys"] == ["id_ed25519"]

    def test_copy(self, client, installer):
        data = client.post("/api/ssh/copy").get_json()
        assert data["success"] is True
        assert (installer.ssh_dir / "id_ed25519").is_file()

    def test_generate_requires_email(self, client):
        resp = client.post("/api/ssh/generate", json={})
        assert resp.status_code == 400
        assert resp.get_json()["kind"] == "ValidationFailure"


# ── Hosts ───────────────────────────────────────────────────────────


class TestHostsRoutes:
    def test_check_default_count(self, client):
        data = client.get("/api/hosts/check").get_json()
        assert data["allPresent"] is False
        assert len(data["missing"]) == 5

    def test_check_count(self, client):
        data = client.get("/api/hosts/check?instances=2").get_json()
        assert data["missing"] == ["instance-a", "instance-b"]

    def test_check_out_of_range(self, client):
        assert client.get("/api/hosts/check?instances=30").status_code == 400

    def test_add_then_already_present(self, client, hosts_file, executor):
        first = client.post("/api/hosts/add", json={"instances": 2}).get_json()
        second = client.post("/api/hosts/add", json={"instances": 2}).get_json()
        assert first == {"success": True}
        assert second == {"success": True, "message": "All entries already exist"}
        assert len(executor.appends) == 1
        assert "127.0.0.1 instance-b" in hosts_file.read_text()

    def test_add_requires_count(self, client):
        assert client.post("/api/hosts/add", json={}).status_code == 400

    def test_add_denied(self, client, executor):
        executor.deny = True
        data = client.post("/api/hosts/add", json={"instances": 1}).get_json()
        assert data["success"] is False
        assert "127.0.0.1 instance-a" in data["manual"]


# ── Setup ───────────────────────────────────────────────────────────


class TestSetupRun:
    def test_success(self, client, installer):
        resp = client.post("/api/setup/run", json={"config": {"instances": 2}})
        data = resp.get_json()
        assert resp.status_code == 200
        assert data["success"] is True
        assert data["urls"] == ["http://instance-a:8787", "http://instance-b:8788"]
        assert (installer.work_dir / "docker-compose.yml").is_file()

    def test_bare_config(self, client):
        assert client.post("/api/setup/run", json={"instances": 1}).get_json()["success"]

    def test_failure_reports_error(self, client, runtime):
        runtime.build_exit_code = 1
        data = client.post("/api/setup/run", json={"config": {"instances": 1}}).get_json()
        assert data["success"] is False
        assert data["error"] == "Docker build failed with code 1"
        assert data["kind"] == "ProcessFailure"

    def test_validation(self, client):
        resp = client.post("/api/setup/run", json={"config": {"instances": 0}})
        assert resp.status_code == 400
        assert resp.get_json()["kind"] == "ValidationFailure"

    def test_not_json(self, client):
        resp = client.post("/api/setup/run", data="hello", content_type="text/plain")
        assert resp.status_code == 400

    def test_conflict(self, client, installer):
        from devenv_installer.core.services.progress import NullSink

        active = installer.sessions.start(NullSink())
        resp = client.post("/api/setup/run", json={"config": {"instances": 1}})
        assert resp.status_code == 409
        assert resp.get_json()["active_run_id"] == active.run_id
        assert installer.runtime.operations() == []

    def test_session_lookup(self, client):
        run_id = client.post("/api/setup/run", json={"instances": 1}).get_json()["run_id"]
        data = client.get(f"/api/setup/session/{run_id}").get_json()
        assert data["done"] is True
        assert data["result"]["success"] is True

    def test_unknown_session(self, client):
        assert client.get("/api/setup/session/nope").status_code == 404


class TestSetupStream:
    def test_headers(self, client):
        resp = client.get("/api/setup/stream")
        assert resp.mimetype == "text/event-stream"
        assert resp.headers["Cache-Control"] == "no-cache"
        resp.close()

    def test_stream_receives_run(self, app, client):
        resp = client.get("/api/setup/stream")
        chunks = iter(resp.response)
        assert next(chunks) in (b": connected\n\n", ": connected\n\n")

        client.post("/api/setup/run", json={"config": {"instances": 1}})
        events = _sse_events(chunks)
        resp.close()

        steps = [e.get("step") for e in events if "step" in e]
        assert steps == ["init", "directories", "compose", "build", "start", "complete"]
        assert {"type": "docker", "output": "[mock] building images\n"} in events

    def test_stream_error_event(self, app, client, runtime):
        runtime.build_exit_code = 1
        resp = client.get("/api/setup/stream")
        chunks = iter(resp.response)
        next(chunks)

        client.post("/api/setup/run", json={"config": {"instances": 1}})
        events = _sse_events(chunks)
        resp.close()

        assert events[-1] == {
            "step": "error",
            "message": "Docker build failed with code 1",
            "percent": -1,
        }

    def test_emit_without_client(self, app):
        app.extensions[STREAM_EXT].emit(ProgressEvent(step=Step.INIT, message="x", percent=0))
