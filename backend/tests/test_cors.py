import importlib
import sys

import pytest
from fastapi.testclient import TestClient


def _cleanup_main():
    sys.modules.pop("roundnet.main", None)


@pytest.fixture(autouse=True)
def main_import_isolation():
    _cleanup_main()
    try:
        yield
    finally:
        _cleanup_main()


def test_rejects_wildcard_origin(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "*")
    with pytest.raises(ValueError):
        importlib.import_module("roundnet.main")


def test_requires_allowed_origins(monkeypatch):
    monkeypatch.delenv("ALLOWED_ORIGINS", raising=False)
    with pytest.raises(ValueError):
        importlib.import_module("roundnet.main")


def test_blank_origins_rejected(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", " , ")
    with pytest.raises(ValueError):
        importlib.import_module("roundnet.main")


def test_explicit_origins_accepted(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://scoreboard.local, http://overlay.local")
    main = importlib.import_module("roundnet.main")
    assert main.ALLOWED_ORIGINS == ["http://scoreboard.local", "http://overlay.local"]


def test_preflight_from_display_origin(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://scoreboard.local")
    main = importlib.import_module("roundnet.main")

    client = TestClient(main.app)
    resp = client.options(
        "/api/v0/channels/1/scores",
        headers={
            "Origin": "http://scoreboard.local",
            "Access-Control-Request-Method": "POST",
        },
    )
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "http://scoreboard.local"
    assert "access-control-allow-credentials" not in resp.headers

    resp = client.options(
        "/api/v0/channels/1/scores",
        headers={"Origin": "http://elsewhere.local", "Access-Control-Request-Method": "POST"},
    )
    assert resp.status_code == 400
