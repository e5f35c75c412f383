"""
Tool instance registry — reconciles live detection with the instance store.

The registry is the only component that both probes environments and
writes to the store. It keeps no instance data between calls: every
operation reads what it needs from the store, probes, and writes back.

Locking model:
    One ``asyncio.Lock`` guards the store. It is held for a single
    read-modify-write step and released before any probe is awaited, so
    a slow executable never blocks unrelated store access.

Failure model:
    Batch operations (bulk detection, refresh, version resync) log and
    skip per-item ``ProbeFailureError`` / ``StoreError``. Single-item
    operations (add, delete, validate, conflict checks) raise.
"""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum
from pathlib import Path

from toolhub.adapters.base import Probe
from toolhub.adapters.shell.command import LocalCommandProbe
from toolhub.adapters.shell.platform import version_command, which_command
from toolhub.adapters.shell.wsl import WSLProbe
from toolhub.core.config.loader import Settings
from toolhub.core.detectors import DetectorRegistry, ToolDetector
from toolhub.core.errors import (
    BackendUnavailableError,
    ConflictError,
    NotFoundError,
    PreconditionFailedError,
    ProbeFailureError,
    StoreError,
    ToolhubError,
)
from toolhub.core.models import (
    InstallMethod,
    SSHConfig,
    Tool,
    ToolCandidate,
    ToolInstance,
    ToolStatus,
    ToolType,
    UpdateResult,
)
from toolhub.core.persistence.instance_store import InstanceStore
from toolhub.core.services.installer import InstallerService
from toolhub.core.services.path_scan import scan_installer_paths, scan_tool_executables
from toolhub.core.services.status_cache import ToolStatusCache
from toolhub.core.services.tool_version import parse_version_string
from toolhub.core.services.version_service import NpmVersionService

logger = logging.getLogger(__name__)

# Installers whose own location is looked up after detection.
_INSTALLER_COMMANDS = {
    InstallMethod.NPM: "npm",
    InstallMethod.BREW: "brew",
}


class VersionProbePolicy(StrEnum):
    """What to do when re-reading a version from an install path fails.

    STRICT raises (explicit update checks must not report stale data).
    LENIENT keeps the stored version (bulk resync must not stop on one tool).
    Both trust the stored version when the instance has no path at all.
    """

    STRICT = "strict"
    LENIENT = "lenient"


class ToolRegistry:
    """Orchestrates detectors against the instance store.

    Args:
        store: Instance store (initialised by the caller).
        detectors: Detector lookup; defaults to the built-in tools.
        probe: Local command probe.
        wsl_probe: Probe for WSL distros.
        version_service: Remote latest-version lookups.
        installer: Update dispatcher; defaults to one on ``probe``.
        status_cache: Cache of the lightweight status view.
        scan_dirs: Directories for candidate scans (default: enhanced PATH).
    """

    def __init__(
        self,
        store: InstanceStore,
        detectors: DetectorRegistry | None = None,
        probe: Probe | None = None,
        wsl_probe: WSLProbe | None = None,
        version_service: NpmVersionService | None = None,
        installer: InstallerService | None = None,
        status_cache: ToolStatusCache | None = None,
        scan_dirs: list[Path] | None = None,
    ):
        self._store = store
        self._detectors = detectors or DetectorRegistry.default()
        self._probe = probe or LocalCommandProbe()
        self._wsl = wsl_probe or WSLProbe()
        self._version_service = version_service or NpmVersionService()
        self._installer = installer or InstallerService(self._probe)
        self._cache = status_cache or ToolStatusCache()
        self._scan_dirs = scan_dirs
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> ToolRegistry:
        """Registry wired to the collaborators described by ``settings``."""
        store = InstanceStore(settings.store_path)
        store.init_tables()
        probe = LocalCommandProbe(timeout=settings.probe_timeout)
        return cls(
            store=store,
            probe=probe,
            wsl_probe=WSLProbe(timeout=settings.probe_timeout),
            version_service=NpmVersionService(
                registry_url=settings.registry_url,
                mirror_url=settings.mirror_url,
                timeout=settings.version_check_timeout,
            ),
            status_cache=ToolStatusCache(ttl=settings.status_cache_ttl),
        )

    @property
    def detectors(self) -> DetectorRegistry:
        return self._detectors

    @property
    def status_cache(self) -> ToolStatusCache:
        return self._cache

    # ── Helpers ──────────────────────────────────────────────────

    def _detector(self, tool_id: str) -> ToolDetector:
        detector = self._detectors.get(tool_id)
        if detector is None:
            raise NotFoundError(f"No detector for tool: {tool_id}")
        return detector

    @staticmethod
    def _tool(tool_id: str) -> Tool:
        tool = Tool.by_id(tool_id)
        if tool is None:
            raise NotFoundError(f"Unknown tool: {tool_id}")
        return tool

    async def _get_local_instance(self, instance_id: str) -> ToolInstance:
        async with self._lock:
            instance = self._store.get_instance(instance_id)
        if instance is None or not instance.is_local:
            raise NotFoundError(f"Local instance not found: {instance_id}")
        return instance

    async def _detect_all(self) -> list[ToolInstance]:
        """Fan out one detection per detector and join them."""
        detectors = self._detectors.all_detectors()
        logger.info("Detecting %d local tools in parallel", len(detectors))
        return list(await asyncio.gather(*(self.detect_single(d) for d in detectors)))

    async def _lookup_installer(self, method: InstallMethod | None) -> str | None:
        command = _INSTALLER_COMMANDS.get(method) if method else None
        if command is None:
            return None
        result = await self._probe.execute(which_command(command))
        if not result.success:
            logger.debug("Installer %s not found on PATH", command)
            return None
        return result.first_line or None

    async def _probe_current_version(
        self,
        instance: ToolInstance,
        policy: VersionProbePolicy,
    ) -> str | None:
        """Re-read an instance's version from its install path."""
        if not instance.install_path:
            if policy is VersionProbePolicy.LENIENT:
                logger.warning("%s has no install path, keeping version", instance.tool_name)
            return instance.version

        command = version_command(instance.install_path)
        result = await self._probe.execute(command)
        if result.success and result.stdout.strip():
            return parse_version_string(result.stdout)

        if policy is VersionProbePolicy.STRICT:
            raise ProbeFailureError(f"Could not read version: command failed: {command}")
        logger.warning(
            "Version probe failed for %s, keeping %s",
            instance.tool_name, instance.version,
        )
        return instance.version

    def _status_from_instances(
        self,
        instances: list[ToolInstance],
    ) -> list[ToolStatus]:
        """One status per registered detector.

        An installed Local instance wins over a not-installed one; among
        equals the first in store order wins.
        """
        statuses = []
        for detector in self._detectors.all_detectors():
            candidates = [
                i for i in instances
                if i.base_id == detector.tool_id and i.is_local
            ]
            local = next(
                (i for i in candidates if i.installed),
                candidates[0] if candidates else None,
            )
            if local is None:
                statuses.append(ToolStatus.absent(detector.tool_id, detector.tool_name))
            else:
                statuses.append(ToolStatus(
                    id=detector.tool_id,
                    name=detector.tool_name,
                    installed=local.installed,
                    version=local.version,
                ))
        return statuses

    # ── Detection ────────────────────────────────────────────────

    async def detect_single(self, detector: ToolDetector) -> ToolInstance:
        """Detect one tool locally. Pure: nothing is persisted."""
        logger.debug("Detecting %s", detector.tool_name)

        version = install_path = install_method = installer_path = None
        installed = await detector.is_installed(self._probe)
        if installed:
            version, install_path, install_method = await asyncio.gather(
                detector.get_version(self._probe),
                detector.get_install_path(self._probe),
                detector.detect_install_method(self._probe),
            )
            installer_path = await self._lookup_installer(install_method)

        logger.debug(
            "%s: installed=%s version=%s path=%s method=%s installer=%s",
            detector.tool_name, installed, version, install_path,
            install_method, installer_path,
        )
        return ToolInstance.create_local(
            detector.tool_id,
            detector.tool_name,
            installed=installed,
            version=version,
            install_path=install_path,
            install_method=install_method,
            installer_path=installer_path,
            is_builtin=True,
        )

    async def detect_and_persist_local_tools(self) -> list[ToolInstance]:
        """Detect every tool concurrently and upsert the results.

        Each tool's previous built-in Local rows are replaced, so repeated
        or concurrent runs never accumulate duplicates. A tool with a
        user-added Local row keeps that row and the detection result is
        not stored.
        """
        results = await self._detect_all()

        async with self._lock:
            for instance in results:
                logger.info(
                    "%s: installed=%s version=%s",
                    instance.tool_name, instance.installed, instance.version,
                )
                try:
                    rows = [
                        r for r in self._store.get_local_instances()
                        if r.base_id == instance.base_id
                    ]
                    user_added = any(not r.is_builtin for r in rows)
                    for old in rows:
                        if old.is_builtin and (
                            user_added or old.instance_id != instance.instance_id
                        ):
                            self._store.delete_instance(old.instance_id)
                    if user_added:
                        logger.info(
                            "%s has a user-added instance, not saving detection",
                            instance.tool_name,
                        )
                        continue
                    self._store.upsert_instance(instance)
                except StoreError as e:
                    logger.warning("Failed to save %s: %s", instance.instance_id, e)

        self._cache.invalidate()
        return results

    async def detect_and_persist_single(self, tool_id: str) -> ToolInstance:
        """Re-detect one tool, replacing its Local rows.

        Raises:
            NotFoundError: No detector for ``tool_id``.
            ConflictError: Another tool's Local instance owns the detected path.
        """
        detector = self._detector(tool_id)
        logger.info("Detecting single tool: %s", tool_id)

        async with self._lock:
            for old in self._store.get_local_instances():
                if old.base_id == tool_id:
                    logger.info("Removing old instance %s", old.instance_id)
                    self._store.delete_instance(old.instance_id)
        self._cache.invalidate_tool(tool_id)

        instance = await self.detect_single(detector)

        async with self._lock:
            if instance.installed and instance.install_path:
                for other in self._store.get_local_instances():
                    if other.base_id != tool_id and other.install_path == instance.install_path:
                        raise ConflictError(
                            f"Path conflict: {instance.install_path} is already "
                            f"used by {other.tool_name}"
                        )
            if instance.installed:
                self._store.upsert_instance(instance)
                logger.info("%s detected and saved", instance.tool_name)
            else:
                logger.info("%s not detected", instance.tool_name)

        self._cache.invalidate()
        return instance

    async def refresh_local_tools(self) -> list[ToolInstance]:
        """Re-detect every tool; drop Local rows for uninstalled ones.

        Returns:
            The freshly detected, installed instances.
        """
        results = await self._detect_all()
        installed = [i for i in results if i.installed]
        fresh_ids = {i.instance_id for i in installed}

        async with self._lock:
            try:
                existing = self._store.get_local_instances()
            except StoreError as e:
                logger.warning("Cannot read local instances: %s", e)
                existing = []

            for old in existing:
                if old.instance_id not in fresh_ids:
                    logger.info("%s no longer present, removing %s", old.tool_name, old.instance_id)
                    try:
                        self._store.delete_instance(old.instance_id)
                    except StoreError as e:
                        logger.warning("Failed to delete %s: %s", old.instance_id, e)

            for instance in installed:
                try:
                    self._store.upsert_instance(instance)
                except StoreError as e:
                    logger.warning("Failed to save %s: %s", instance.instance_id, e)

        self._cache.invalidate()
        logger.info("Local refresh done: %d tools installed", len(installed))
        return installed

    async def detect_install_methods(self) -> dict[str, InstallMethod]:
        """Install method per tool, for every detector that reports one."""
        detectors = self._detectors.all_detectors()
        methods = await asyncio.gather(
            *(d.detect_install_method(self._probe) for d in detectors)
        )
        return {
            d.tool_id: method
            for d, method in zip(detectors, methods)
            if method is not None
        }

    # ── Remote instances ─────────────────────────────────────────

    async def add_wsl_instance(self, base_id: str, distro: str) -> ToolInstance:
        """Probe a WSL distro for a tool and record the result.

        Raises:
            BackendUnavailableError: WSL is not installed on this host.
            NotFoundError: Unknown tool.
            ConflictError: The tool is already registered for this distro.
        """
        if not self._wsl.is_available():
            raise BackendUnavailableError("WSL is not available; install WSL first")
        tool = self._tool(base_id)

        installed, version, path = await self._wsl.detect_tool_in_distro(
            distro, tool.command_name,
        )
        instance = ToolInstance.create_wsl(
            base_id, tool.name, distro,
            installed=installed, version=version, install_path=path,
        )

        async with self._lock:
            self._store.add_instance(instance)
        self._cache.invalidate_tool(base_id)
        logger.info("Added WSL instance %s (installed=%s)", instance.instance_id, installed)
        return instance

    async def add_ssh_instance(self, base_id: str, config: SSHConfig) -> ToolInstance:
        """Record an SSH target for a tool. No detection is performed.

        Raises:
            NotFoundError: Unknown tool.
            ConflictError: The same SSH instance already exists.
        """
        tool = self._tool(base_id)
        instance = ToolInstance.create_ssh(base_id, tool.name, config, installed=False)

        async with self._lock:
            if self._store.instance_exists(instance.instance_id):
                raise ConflictError(f"SSH instance already exists: {instance.instance_id}")
            self._store.add_instance(instance)
        self._cache.invalidate_tool(base_id)
        logger.info("Added SSH instance %s", instance.instance_id)
        return instance

    async def delete_instance(self, instance_id: str) -> None:
        """Delete a user-added SSH instance.

        Raises:
            NotFoundError: No such instance.
            PreconditionFailedError: Not SSH, or built-in.
        """
        async with self._lock:
            instance = self._store.get_instance(instance_id)
            if instance is None:
                raise NotFoundError(f"Instance not found: {instance_id}")
            if instance.tool_type is not ToolType.SSH:
                raise PreconditionFailedError("Only SSH instances can be deleted")
            if instance.is_builtin:
                raise PreconditionFailedError("Built-in instances cannot be deleted")
            self._store.delete_instance(instance_id)
        self._cache.invalidate_tool(instance.base_id)
        logger.info("Deleted instance %s", instance_id)

    # ── Updates and versions ─────────────────────────────────────

    async def update_instance(self, instance_id: str, force: bool = False) -> UpdateResult:
        """Update a Local instance through its installer.

        Installer errors propagate and leave the store untouched.
        """
        instance = await self._get_local_instance(instance_id)
        result = await self._installer.update_instance_by_installer(instance, force=force)

        if result.success and result.current_version:
            updated = instance.with_version(result.current_version)
            async with self._lock:
                try:
                    self._store.update_instance(updated)
                except (StoreError, NotFoundError) as e:
                    logger.warning("Failed to record new version for %s: %s", instance_id, e)
            self._cache.invalidate_tool(instance.base_id)
        return result

    async def check_update_for_instance(self, instance_id: str) -> UpdateResult:
        """Compare the instance's live version with the latest release.

        Raises:
            NotFoundError: No such Local instance, or unknown tool.
            ProbeFailureError: The install path's ``--version`` failed.
        """
        instance = await self._get_local_instance(instance_id)
        current = await self._probe_current_version(instance, VersionProbePolicy.STRICT)
        tool = self._tool(instance.base_id)

        try:
            info = await self._version_service.check_version(tool, current)
        except ToolhubError as e:
            logger.info("Update check failed for %s: %s", instance_id, e)
            result = UpdateResult(
                success=True,
                message=f"Could not check for updates: {e}",
                current_version=current,
                tool_id=tool.id,
            )
        else:
            result = UpdateResult(
                success=True,
                message="Check complete",
                has_update=info.has_update,
                current_version=current,
                latest_version=info.latest_version,
                mirror_version=info.mirror_version,
                mirror_is_stale=info.mirror_is_stale,
                tool_id=tool.id,
            )

        if current != instance.version:
            async with self._lock:
                try:
                    self._store.update_instance(instance.with_version(current))
                except (StoreError, NotFoundError) as e:
                    logger.warning("Failed to sync version of %s: %s", instance_id, e)
                else:
                    logger.info(
                        "Version of %s synced: %s -> %s",
                        instance_id, instance.version, current,
                    )
            self._cache.invalidate_tool(instance.base_id)
        return result

    async def refresh_all_tool_versions(self) -> list[ToolStatus]:
        """Re-read every Local instance's version from its install path."""
        async with self._lock:
            locals_ = self._store.get_local_instances()

        versions = await asyncio.gather(
            *(self._probe_current_version(i, VersionProbePolicy.LENIENT) for i in locals_)
        )

        statuses = []
        async with self._lock:
            for instance, version in zip(locals_, versions):
                if version != instance.version:
                    try:
                        self._store.update_instance(instance.with_version(version))
                    except (StoreError, NotFoundError) as e:
                        logger.warning("Failed to update %s: %s", instance.instance_id, e)
                    else:
                        logger.info(
                            "%s version: %s -> %s",
                            instance.tool_name, instance.version, version,
                        )
                statuses.append(ToolStatus(
                    id=instance.base_id,
                    name=instance.tool_name,
                    installed=instance.installed,
                    version=version,
                ))

        self._cache.invalidate()
        return statuses

    # ── Read model ───────────────────────────────────────────────

    async def has_local_tools_in_store(self) -> bool:
        async with self._lock:
            return self._store.has_local_tools()

    async def get_all_grouped(self) -> dict[str, list[ToolInstance]]:
        """Stored instances grouped by tool ID. Never probes.

        Every known tool ID is present, with an empty list if needed.
        """
        async with self._lock:
            try:
                instances = self._store.get_all_instances()
            except StoreError as e:
                logger.warning("Reading instances failed, using empty list: %s", e)
                instances = []

        grouped: dict[str, list[ToolInstance]] = {
            tool_id: [] for tool_id in self._detectors.list_ids()
        }
        for tool in Tool.all():
            grouped.setdefault(tool.id, [])
        for instance in instances:
            grouped.setdefault(instance.base_id, []).append(instance)
        return grouped

    async def refresh_all(self) -> dict[str, list[ToolInstance]]:
        """Detect and persist every tool, then return the grouped view."""
        await self.detect_and_persist_local_tools()
        return await self.get_all_grouped()

    async def get_local_tool_status(self) -> list[ToolStatus]:
        """Lightweight status per tool, read from the store only."""
        grouped = await self.get_all_grouped()
        return self._status_from_instances(
            [i for instances in grouped.values() for i in instances]
        )

    async def get_cached_local_status(self) -> list[ToolStatus]:
        """``get_local_tool_status`` through the status cache."""
        return await self._cache.get(self.get_local_tool_status)

    async def refresh_and_get_local_status(self) -> list[ToolStatus]:
        """Re-detect, reconcile, and return the lightweight status."""
        instances = await self.refresh_local_tools()
        statuses = self._status_from_instances(instances)
        self._cache.put(statuses)
        return statuses

    # ── Manual registration ──────────────────────────────────────

    async def scan_tool_candidates(self, tool_id: str) -> list[ToolCandidate]:
        """Every local executable of a tool that answers ``--version``."""
        tool = self._tool(tool_id)
        candidates = []
        for tool_path in scan_tool_executables(tool, self._scan_dirs):
            result = await self._probe.execute(version_command(tool_path))
            if not result.success:
                logger.debug("Skipping %s: version probe failed", tool_path)
                continue

            installers = scan_installer_paths(tool_path)
            first = installers[0] if installers else None
            candidates.append(ToolCandidate(
                tool_path=tool_path,
                installer_path=first.path if first else None,
                install_method=first.installer_type if first else InstallMethod.OFFICIAL,
                version=parse_version_string(result.stdout),
            ))
        return candidates

    async def validate_tool_path(self, path: str) -> str:
        """Check that ``path`` is an executable answering ``--version``.

        Returns:
            The raw (trimmed) version output.

        Raises:
            PreconditionFailedError: Path missing or not a file.
            ProbeFailureError: Command failed or printed no version.
        """
        file = Path(path)
        if not file.exists():
            raise PreconditionFailedError(f"Path does not exist: {path}")
        if not file.is_file():
            raise PreconditionFailedError(f"Path is not a file: {path}")

        result = await self._probe.execute(version_command(path))
        if not result.success:
            raise ProbeFailureError(f"Command failed with exit code {result.exit_code}")

        output = result.stdout.strip()
        if not output:
            raise ProbeFailureError("No version information in output")
        if not any(ch.isdigit() for ch in output):
            raise ProbeFailureError(f"Invalid version information: {output}")
        return output

    async def add_tool_instance(
        self,
        tool_id: str,
        path: str,
        install_method: InstallMethod,
        installer_path: str | None = None,
    ) -> ToolStatus:
        """Register a manually chosen local executable.

        The tool's built-in Local rows are removed. If the timestamped id
        is already taken, the timestamp is bumped until it is free.

        Raises:
            NotFoundError: Unknown tool.
            PreconditionFailedError: Invalid path or installer path.
            ProbeFailureError: The executable gives no version.
            ConflictError: Another Local instance already uses ``path``.
        """
        tool = self._tool(tool_id)
        raw_version = await self.validate_tool_path(path)

        if install_method.requires_installer:
            if not installer_path:
                raise PreconditionFailedError(
                    f"Install method '{install_method}' requires an installer path"
                )
            installer = Path(installer_path)
            if not installer.exists():
                raise PreconditionFailedError(f"Installer path does not exist: {installer_path}")
            if not installer.is_file():
                raise PreconditionFailedError(f"Installer path is not a file: {installer_path}")

        version = parse_version_string(raw_version)
        instance = ToolInstance.create_local(
            tool.id,
            tool.name,
            installed=True,
            version=version,
            install_path=path,
            install_method=install_method,
            installer_path=installer_path,
            is_builtin=False,
        )

        async with self._lock:
            existing_rows = self._store.get_local_instances()
            for existing in existing_rows:
                if existing.install_path == path:
                    raise ConflictError(
                        f"Path conflict: {path} is already used by {existing.tool_name}"
                    )
            # A manual registration supersedes the tool's detected rows.
            for existing in existing_rows:
                if existing.base_id == tool.id and existing.is_builtin:
                    logger.info("Replacing detected instance %s", existing.instance_id)
                    self._store.delete_instance(existing.instance_id)
            ts = instance.created_at
            while self._store.instance_exists(instance.instance_id):
                ts += 1
                instance = instance.model_copy(update={
                    "instance_id": f"{tool.id}-local-{ts}",
                    "created_at": ts,
                    "updated_at": ts,
                })
            self._store.add_instance(instance)

        self._cache.invalidate_tool(tool.id)
        logger.info("Added %s instance at %s", tool.name, path)
        return ToolStatus(id=tool.id, name=tool.name, installed=True, version=version)

    async def detect_single_tool_with_cache(
        self,
        tool_id: str,
        force_redetect: bool = False,
    ) -> ToolStatus:
        """Stored status for an installed tool, else a fresh detection."""
        if not force_redetect:
            async with self._lock:
                existing = next(
                    (
                        i for i in self._store.get_local_instances()
                        if i.base_id == tool_id and i.installed
                    ),
                    None,
                )
            if existing is not None:
                logger.info("%s already in store", existing.tool_name)
                return ToolStatus(
                    id=tool_id,
                    name=existing.tool_name,
                    installed=True,
                    version=existing.version,
                )

        instance = await self.detect_and_persist_single(tool_id)
        return ToolStatus(
            id=tool_id,
            name=instance.tool_name,
            installed=instance.installed,
            version=instance.version,
        )
