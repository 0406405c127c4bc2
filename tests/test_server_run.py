"""Tests for the uvicorn launcher."""

from __future__ import annotations

import pytest

from larder.server import run


def test_main_passes_environment_to_uvicorn(monkeypatch):
    calls = {}
    monkeypatch.setenv("LARDER_SERVER_HOST", "0.0.0.0")
    monkeypatch.setenv("LARDER_SERVER_PORT", "9001")
    monkeypatch.delenv("RELOAD", raising=False)
    monkeypatch.setattr(run.uvicorn, "run", lambda target, **kwargs: calls.update(target=target, **kwargs))

    run.main()

    assert calls == {"target": "larder.server.app:app", "host": "0.0.0.0", "port": 9001, "reload": False}


@pytest.mark.parametrize("value", ["abc", "0", "70000"])
def test_invalid_port_exits(value):
    with pytest.raises(SystemExit):
        run._parse_port(value)
