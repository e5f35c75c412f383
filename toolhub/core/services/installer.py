"""
Installer service — dispatch updates to the tool's installer.

The registry hands over an instance; this service picks the command
for its install method and runs it through the probe. Installer
failures are raised, never swallowed.
"""

from __future__ import annotations

import logging
import shlex

from toolhub.adapters.base import Probe
from toolhub.adapters.shell.platform import version_command
from toolhub.core.errors import NotFoundError, PreconditionFailedError, ProbeFailureError
from toolhub.core.models import InstallMethod, Tool, ToolInstance, UpdateResult
from toolhub.core.services.tool_version import parse_version_string

logger = logging.getLogger(__name__)


def _q(value: str) -> str:
    return shlex.quote(value)


class InstallerService:
    """Runs npm / brew / official update commands for local instances."""

    def __init__(self, probe: Probe):
        self._probe = probe

    def update_command(self, instance: ToolInstance, force: bool = False) -> str:
        """The shell command that updates ``instance``.

        Raises:
            NotFoundError: Unknown tool.
            PreconditionFailedError: The method cannot be updated here.
        """
        tool = Tool.by_id(instance.base_id)
        if tool is None:
            raise NotFoundError(f"Unknown tool: {instance.base_id}")

        method = instance.install_method
        if method is InstallMethod.NPM:
            if not tool.npm_package:
                raise PreconditionFailedError(f"{tool.name} has no npm package")
            npm = instance.installer_path or "npm"
            cmd = f"{_q(npm)} install -g {_q(tool.npm_package + '@latest')}"
            return cmd + " --force" if force else cmd

        if method is InstallMethod.BREW:
            if not tool.brew_formula:
                raise PreconditionFailedError(f"{tool.name} has no Homebrew formula")
            brew = instance.installer_path or "brew"
            verb = "reinstall" if force else "upgrade"
            return f"{_q(brew)} {verb} {_q(tool.brew_formula)}"

        if method is InstallMethod.OFFICIAL:
            if not instance.install_path:
                raise PreconditionFailedError(
                    f"Instance {instance.instance_id} has no install path to update"
                )
            return f"{_q(instance.install_path)} update"

        raise PreconditionFailedError(
            f"Install method '{method or 'unknown'}' cannot be updated automatically"
        )

    async def update_instance_by_installer(
        self,
        instance: ToolInstance,
        force: bool = False,
    ) -> UpdateResult:
        """Update one local instance and report the version afterwards.

        Raises:
            PreconditionFailedError: Method not updatable.
            ProbeFailureError: The update command failed.
        """
        command = self.update_command(instance, force=force)
        logger.info("Updating %s: %s", instance.instance_id, command)

        result = await self._probe.execute(command)
        if not result.success:
            detail = result.stderr or result.stdout or f"exit code {result.exit_code}"
            raise ProbeFailureError(f"Update failed for {instance.tool_name}: {detail}")

        current_version = instance.version
        if instance.install_path:
            after = await self._probe.execute(version_command(instance.install_path))
            if after.success and after.stdout:
                current_version = parse_version_string(after.stdout)
            else:
                logger.warning("Could not read version of %s after update", instance.instance_id)

        if current_version and current_version == instance.version and not force:
            message = f"{instance.tool_name} is already at the latest version ({current_version})"
        else:
            message = f"{instance.tool_name} updated to {current_version or 'unknown version'}"

        return UpdateResult(
            success=True,
            message=message,
            current_version=current_version,
            tool_id=instance.base_id,
        )
