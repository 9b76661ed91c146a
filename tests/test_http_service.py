# tests/test_http_service.py

import json

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer as LocalServer

from corekeeper.exceptions import DownloadError
from corekeeper.models.config import AppConfig, SourceSettings, SubscriptionItem
from corekeeper.models.engine import EngineType
from corekeeper.services.http_service import HttpUpdateService


def _release_app(tag: str, gui_tag: str = "v0.1.0") -> web.Application:
    async def release(request):
        base = str(request.url.origin())
        return web.json_response(
            {
                "tag_name": tag,
                "assets": [
                    {"name": "Xray-windows-64.zip", "browser_download_url": f"{base}/dl/win"},
                    {"name": "Xray-linux-64.zip", "browser_download_url": f"{base}/dl/linux"},
                ],
            }
        )

    async def gui_release(request):
        return web.json_response({"tag_name": gui_tag, "assets": []})

    async def download(request):
        return web.Response(body=b"PK-" + request.match_info["name"].encode())

    async def subscription(request):
        return web.Response(text="vmess://example")

    app = web.Application()
    app.router.add_get("/release", release)
    app.router.add_get("/gui", gui_release)
    app.router.add_get("/dl/{name}", download)
    app.router.add_get("/sub", subscription)
    app.router.add_get("/geo/{name}", download)
    return app


def _config(server: LocalServer) -> AppConfig:
    def url(path: str) -> str:
        return str(server.make_url(path))

    return AppConfig(
        sources=SourceSettings(
            xray_release_api=url("/release"),
            gui_release_api=url("/gui"),
            geoip_url=url("/geo/geoip"),
            geosite_url=url("/geo/geosite"),
        ),
        subscriptions=[SubscriptionItem(id="home", url=url("/sub"), remarks="Home")],
    )


@pytest.fixture
async def server():
    async with LocalServer(_release_app("v1.8.4")) as test_server:
        yield test_server


@pytest.fixture
async def http_service(paths):
    service = HttpUpdateService(paths, base_delay=0, platform_key=("linux", "amd64"))
    yield service
    await service.close()


async def test_core_download_picks_platform_asset(http_service, server, paths):
    result = await http_service.check_update_core(EngineType.XRAY, _config(server))

    assert result.success
    downloaded = paths.temp_dir / "Xray-linux-64.zip"
    assert result.message == str(downloaded)
    assert downloaded.read_bytes() == b"PK-linux"


async def test_recorded_tag_skips_next_download(http_service, server, paths):
    config = _config(server)
    first = await http_service.check_update_core(EngineType.XRAY, config)
    await http_service.record_installed(EngineType.XRAY, first.message)

    versions = json.loads((paths.bin_dir / "versions.json").read_text())
    assert versions == {"xray": "v1.8.4"}
    second = await http_service.check_update_core(EngineType.XRAY, config)
    assert not second.success
    assert "already the latest" in second.message


async def test_missing_platform_asset_raises(paths, server):
    service = HttpUpdateService(paths, platform_key=("macos", "arm64"))
    try:
        with pytest.raises(DownloadError):
            await service.check_update_core(EngineType.XRAY, _config(server))
    finally:
        await service.close()


async def test_geo_files_replace_targets(http_service, server, paths):
    result = await http_service.update_geo_files(_config(server))

    assert result.success
    assert (paths.geo_dir / "geoip.dat").read_bytes() == b"PK-geoip"
    assert (paths.geo_dir / "geosite.dat").read_bytes() == b"PK-geosite"


async def test_gui_check_reports_newer_release(paths):
    async with LocalServer(_release_app("v1.0.0", gui_tag="v99.0.0")) as server:
        service = HttpUpdateService(paths)
        try:
            result = await service.check_update_gui(_config(server))
        finally:
            await service.close()
    assert result.success
    assert result.message == "New version available: 99.0.0"


async def test_gui_check_when_current(http_service, server):
    result = await http_service.check_update_gui(_config(server))
    assert not result.success
    assert result.message.startswith("Already the latest version")


async def test_subscription_body_is_stored(http_service, server, paths):
    result = await http_service.update_subscription(_config(server), "home")

    assert result.success
    assert "Home" in result.message
    assert (paths.subscriptions_dir / "home.txt").read_text() == "vmess://example"


async def test_unknown_subscription_fails(http_service, server):
    result = await http_service.update_subscription(_config(server), "nope")
    assert not result.success
