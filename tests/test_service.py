import asyncio
import json

import pytest
from aiohttp.test_utils import make_mocked_request

from remote_config.common.settings import settings_from_dict
from remote_config.main import main
from remote_config.services.config.provider import AppConfigProvider
from remote_config.services.config.service import ConfigService

from tests.conftest import make_download


@pytest.fixture
def settings(tmp_path):
    return settings_from_dict({
        "server": {"url": "https://config.example.org/app.json"},
        "cache": {"dir": str(tmp_path / "state")},
    })


@pytest.fixture
def service(settings, server, storage, parser, clock):
    provider = AppConfigProvider(server=server, storage=storage, parser=parser, clock=clock)
    return ConfigService(settings, provider=provider)


def body(response) -> dict:
    return json.loads(response.text)


@pytest.mark.asyncio
async def test_refresh_and_health(service, server):
    server.succeed(make_download({"featureX": True}))

    config = await service.refresh()
    response = await service._health_handler(make_mocked_request("GET", "/health"))

    assert config.mapped_config == {"featureX": True}
    data = body(response)
    assert data["status"] == "healthy"
    assert data["config_loaded"] is True
    assert data["is_fallback"] is False
    assert data["last_error"] is None


@pytest.mark.asyncio
async def test_refresh_failure_is_reported(service, server):
    server.fail()

    assert await service.refresh() is None

    data = body(await service._health_handler(make_mocked_request("GET", "/health")))
    assert data["status"] == "degraded"
    assert data["config_loaded"] is False
    assert "unavailable" in data["last_error"]


@pytest.mark.asyncio
async def test_config_endpoint(service, server, storage):
    storage.value = make_download({"featureX": False}, offset_s=1.5)
    server.fail()

    response = await service._config_handler(make_mocked_request("GET", "/config"))

    assert response.status == 200
    data = body(response)
    assert data["config"] == {"featureX": False}
    assert data["is_fallback"] is True
    assert data["local_offset_ms"] == 1500


@pytest.mark.asyncio
async def test_config_endpoint_unavailable(service, server):
    server.fail()

    response = await service._config_handler(make_mocked_request("GET", "/config"))

    assert response.status == 503
    assert "error" in body(response)


@pytest.mark.asyncio
async def test_sync_endpoint_schedules_force_update(service, server):
    server.succeed(make_download({"v": 1}))
    await service.refresh()

    server.succeed(make_download({"v": 2}))
    response = await service._sync_handler(make_mocked_request("POST", "/sync"))
    assert response.status == 202

    for _ in range(100):
        if service.provider.current.mapped_config == {"v": 2}:
            break
        await asyncio.sleep(0.01)

    assert service.provider.current.mapped_config == {"v": 2}
    assert server.clear_cache_calls == 1


def test_app_routes(service):
    app = service.create_app()
    routes = {(r.method, r.resource.canonical) for r in app.router.routes()}

    assert ("GET", "/health") in routes
    assert ("GET", "/config") in routes
    assert ("POST", "/sync") in routes


def test_cli_dry_run(tmp_path, monkeypatch, capsys):
    monkeypatch.delenv("REMOTE_CONFIG_URL", raising=False)
    path = tmp_path / "config.yaml"
    path.write_text("server:\n  url: https://config.example.org/app.json\n", encoding="utf-8")

    assert main(["--config", str(path), "--dry-run"]) == 0
    assert "settings valid" in capsys.readouterr().out


def test_cli_rejects_invalid_settings(tmp_path, monkeypatch, capsys):
    monkeypatch.delenv("REMOTE_CONFIG_URL", raising=False)

    assert main(["--config", str(tmp_path / "missing.yaml"), "--dry-run"]) == 1
    assert "Missing server.url" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_injected_provider_is_not_shadowed(service, server):
    assert service.provider.server is server
    assert not hasattr(service, "server")

    await service.stop()

    assert server.closed is True


@pytest.mark.asyncio
async def test_refresh_loop_survives_unexpected_errors(service, monkeypatch):
    calls = 0

    async def flaky_refresh():
        nonlocal calls
        calls += 1
        if calls == 1:
            raise RuntimeError("unexpected")
        service._running = False

    monkeypatch.setattr(service, "refresh", flaky_refresh)
    service.settings.service.refresh_interval_s = 0
    service._running = True

    await asyncio.wait_for(service._refresh_loop(), timeout=1)

    assert calls == 2
