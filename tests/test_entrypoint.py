"""Tests for the ASGI and command-line entrypoints."""

import asyncio
import importlib
import sys

import pytest
import uvicorn

from delivery_tracker import containers, main
from delivery_tracker.containers import AppContainer


@pytest.fixture
def supabase_env(monkeypatch: pytest.MonkeyPatch) -> list[tuple[str, str]]:
    created: list[tuple[str, str]] = []

    def fake_client(url: str, key: str) -> object:
        created.append((url, key))
        return object()

    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")
    monkeypatch.setattr(containers, "AsyncClient", fake_client)
    monkeypatch.delitem(sys.modules, "delivery_tracker.api.asgi", raising=False)
    return created


def test_asgi_app_loads_inside_running_loop(supabase_env: list[tuple[str, str]]) -> None:
    async def load() -> uvicorn.Config:
        config = uvicorn.Config("delivery_tracker.api.asgi:app")
        config.load()
        return config

    config = asyncio.run(load())

    asgi = importlib.import_module("delivery_tracker.api.asgi")
    assert config.loaded
    assert isinstance(asgi.app.state.container, AppContainer)
    assert supabase_env == [("https://example.supabase.co", "anon-key")]
    asyncio.run(asgi.app.state.container.close_resources())


def test_main_serves_asgi_app(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[tuple[str, dict[str, object]]] = []

    def fake_run(app: str, **kwargs: object) -> None:
        calls.append((app, kwargs))

    monkeypatch.setattr(uvicorn, "run", fake_run)
    monkeypatch.setenv("HOST", "0.0.0.0")
    monkeypatch.setenv("PORT", "9000")

    main.main()

    assert calls == [
        ("delivery_tracker.api.asgi:app", {"host": "0.0.0.0", "port": 9000})
    ]
