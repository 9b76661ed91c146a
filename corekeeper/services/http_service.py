"""
HTTP implementation of the update service, backed by GitHub release APIs.
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any

import aiofiles
import aiohttp
from packaging.version import InvalidVersion, Version

from corekeeper import __version__
from corekeeper.exceptions import DownloadError
from corekeeper.models.config import AppConfig
from corekeeper.models.engine import ENGINE_SPECS, EngineType, current_platform
from corekeeper.models.results import UpdateResult
from corekeeper.utils.path import AppPaths

log = logging.getLogger(__name__)

VERSIONS_FILE = "versions.json"
GEO_FILES = ("geoip.dat", "geosite.dat")


class HttpUpdateService:
    """
    Downloads engine releases, geo data and subscriptions over HTTP.

    Features:
    - One pooled aiohttp session for the lifetime of the service
    - Retry with exponential backoff for file downloads
    - Installed release tags remembered in bin/versions.json
    """

    CHUNK_SIZE = 131072  # 128 KB

    def __init__(
        self,
        paths: AppPaths,
        max_attempts: int = 3,
        base_delay: float = 1.5,
        platform_key: tuple[str, str] | None = None,
    ):
        self.paths = paths
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.platform_key = platform_key or current_platform()
        self._session: aiohttp.ClientSession | None = None
        self._session_lock = asyncio.Lock()
        # downloaded file path -> (engine, release tag)
        self._pending: dict[str, tuple[EngineType, str]] = {}

    async def _get_session(self) -> aiohttp.ClientSession:
        """Ensures an active aiohttp session is available."""
        async with self._session_lock:
            if self._session is None or self._session.closed:
                connector = aiohttp.TCPConnector(
                    limit=4, ttl_dns_cache=300, enable_cleanup_closed=True
                )
                self._session = aiohttp.ClientSession(
                    connector=connector,
                    headers={
                        "User-Agent": f"corekeeper/{__version__}",
                        "Accept-Encoding": "gzip, deflate",
                    },
                    timeout=aiohttp.ClientTimeout(
                        total=None, sock_connect=15, sock_read=90
                    ),
                )
            return self._session

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def _fetch_json(self, url: str) -> dict[str, Any]:
        session = await self._get_session()
        async with session.get(url, headers={"Accept": "application/json"}) as response:
            response.raise_for_status()
            return await response.json(content_type=None)

    async def _download(self, url: str, destination: Path) -> None:
        """Downloads url to destination, retrying transient failures."""
        last_exception: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                session = await self._get_session()
                async with session.get(url, allow_redirects=True) as response:
                    response.raise_for_status()
                    async with aiofiles.open(destination, "wb") as f:
                        async for chunk in response.content.iter_chunked(
                            self.CHUNK_SIZE
                        ):
                            await f.write(chunk)
                return
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_exception = e
                log.debug(
                    f"Download attempt {attempt}/{self.max_attempts} for "
                    f"'{destination.name}' failed: {e}. Retrying..."
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.base_delay * (2 ** (attempt - 1)))

        raise DownloadError(f"Could not download {url}: {last_exception}")

    def _read_versions(self) -> dict[str, str]:
        path = self.paths.bin_dir / VERSIONS_FILE
        if not path.is_file():
            return {}
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            return data if isinstance(data, dict) else {}
        except (json.JSONDecodeError, OSError) as e:
            log.debug(f"Ignoring unreadable {VERSIONS_FILE}: {e}")
            return {}

    def _write_versions(self, versions: dict[str, str]) -> None:
        self.paths.bin_dir.mkdir(parents=True, exist_ok=True)
        with open(self.paths.bin_dir / VERSIONS_FILE, "w", encoding="utf-8") as f:
            json.dump(versions, f, indent=2, sort_keys=True)

    async def check_update_core(
        self, engine: EngineType, config: AppConfig
    ) -> UpdateResult:
        spec = ENGINE_SPECS[engine]
        api_url = getattr(config.sources, f"{engine.value}_release_api")
        release = await self._fetch_json(api_url)
        tag = str(release.get("tag_name", ""))

        installed = (await asyncio.to_thread(self._read_versions)).get(engine.value)
        if tag and tag == installed:
            return UpdateResult(
                False, f"{spec.display_name} is already the latest version ({tag})"
            )

        pattern = spec.asset_pattern(*self.platform_key)
        asset = next(
            (a for a in release.get("assets", []) if pattern.match(a.get("name", ""))),
            None,
        )
        if asset is None:
            raise DownloadError(
                f"No {spec.display_name} {tag} asset for {'/'.join(self.platform_key)}"
            )

        self.paths.temp_dir.mkdir(parents=True, exist_ok=True)
        destination = self.paths.temp_dir / asset["name"]
        await self._download(asset["browser_download_url"], destination)
        self._pending[str(destination)] = (engine, tag)
        log.info(f"Downloaded {spec.display_name} {tag} to {destination}")
        return UpdateResult(True, str(destination))

    async def record_installed(self, engine: EngineType, file_path: str) -> None:
        pending = self._pending.pop(file_path, None)
        if pending is None or pending[0] is not engine:
            return
        versions = await asyncio.to_thread(self._read_versions)
        versions[engine.value] = pending[1]
        await asyncio.to_thread(self._write_versions, versions)

    async def update_geo_files(self, config: AppConfig) -> UpdateResult:
        urls = {
            "geoip.dat": config.sources.geoip_url,
            "geosite.dat": config.sources.geosite_url,
        }
        self.paths.temp_dir.mkdir(parents=True, exist_ok=True)
        self.paths.geo_dir.mkdir(parents=True, exist_ok=True)
        failures = []
        for name in GEO_FILES:
            tmp_path = self.paths.temp_dir / f"{name}.download"
            try:
                await self._download(urls[name], tmp_path)
                await asyncio.to_thread(os.replace, tmp_path, self.paths.geo_dir / name)
            except (DownloadError, OSError) as e:
                failures.append(f"{name}: {e}")
        if failures:
            return UpdateResult(False, "Geo files update failed: " + "; ".join(failures))
        return UpdateResult(True, "Geo files updated successfully")

    async def check_update_gui(self, config: AppConfig) -> UpdateResult:
        release = await self._fetch_json(config.sources.gui_release_api)
        tag = str(release.get("tag_name", ""))
        try:
            latest = Version(tag.lstrip("vV"))
        except InvalidVersion:
            return UpdateResult(False, f"Unrecognized GUI release tag: {tag!r}")
        if latest > Version(__version__):
            return UpdateResult(True, f"New version available: {latest}")
        return UpdateResult(False, f"Already the latest version ({__version__})")

    async def update_subscription(self, config: AppConfig, sub_id: str) -> UpdateResult:
        item = config.get_subscription(sub_id)
        if item is None:
            return UpdateResult(False, f"Unknown subscription: {sub_id}")
        if not item.url:
            return UpdateResult(False, f"Subscription {sub_id} has no URL")

        session = await self._get_session()
        async with session.get(item.url, allow_redirects=True) as response:
            response.raise_for_status()
            body = await response.read()

        self.paths.subscriptions_dir.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(self.paths.subscriptions_dir / f"{sub_id}.txt", "wb") as f:
            await f.write(body)
        label = item.remarks or sub_id
        return UpdateResult(True, f"Subscription {label} updated ({len(body)} bytes)")
