"""
Version service — latest published version of a tool.

Queries the npm registry (and optionally a mirror) for the ``latest``
dist-tag of the tool's package. HTTP runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
import urllib.parse
import urllib.request

from toolhub.core.errors import ProbeFailureError
from toolhub.core.models import Tool, VersionInfo
from toolhub.core.services.tool_version import compare_versions, is_newer

logger = logging.getLogger(__name__)


class NpmVersionService:
    """Latest-version lookups against an npm-compatible registry."""

    def __init__(
        self,
        registry_url: str = "https://registry.npmjs.org",
        mirror_url: str | None = None,
        timeout: float = 10.0,
    ):
        self._registry_url = registry_url.rstrip("/")
        self._mirror_url = mirror_url.rstrip("/") if mirror_url else None
        self._timeout = timeout

    def _fetch_latest(self, base_url: str, package: str) -> str | None:
        url = f"{base_url}/{urllib.parse.quote(package, safe='@')}/latest"
        req = urllib.request.Request(url, headers={"Accept": "application/json"})
        with urllib.request.urlopen(req, timeout=self._timeout) as resp:
            data = json.loads(resp.read().decode("utf-8"))
        version = data.get("version") if isinstance(data, dict) else None
        return str(version) if version else None

    def fetch(self, tool: Tool, current_version: str | None = None) -> VersionInfo:
        """Blocking variant of :meth:`check_version`."""
        if not tool.npm_package:
            raise ProbeFailureError(f"{tool.name} has no published package to check")

        try:
            latest = self._fetch_latest(self._registry_url, tool.npm_package)
        except (urllib.error.URLError, OSError, ValueError) as e:
            raise ProbeFailureError(f"Registry lookup failed for {tool.npm_package}: {e}") from e
        if not latest:
            raise ProbeFailureError(f"Registry returned no version for {tool.npm_package}")

        mirror = None
        if self._mirror_url:
            try:
                mirror = self._fetch_latest(self._mirror_url, tool.npm_package)
            except (urllib.error.URLError, OSError, ValueError) as e:
                logger.info("Mirror lookup failed for %s: %s", tool.npm_package, e)

        return VersionInfo(
            has_update=is_newer(latest, current_version),
            latest_version=latest,
            mirror_version=mirror,
            mirror_is_stale=bool(mirror and compare_versions(mirror, latest) < 0),
        )

    async def check_version(self, tool: Tool, current_version: str | None = None) -> VersionInfo:
        """Latest published version of ``tool`` compared to ``current_version``.

        Raises:
            ProbeFailureError: If the primary registry gives no answer.
        """
        return await asyncio.to_thread(self.fetch, tool, current_version)
