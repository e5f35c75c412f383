"""
toolhub — CLI entrypoint.

Usage:
    toolhub --help
    toolhub status
    toolhub detect claude-code --force
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click

from toolhub import __version__
from toolhub.core.config.loader import ConfigError, load_settings
from toolhub.core.errors import ToolhubError
from toolhub.core.models import InstallMethod, SSHConfig, ToolInstance, ToolStatus
from toolhub.core.observability.logging_config import configure_cli_logging
from toolhub.core.services.tool_registry import ToolRegistry


@click.group()
@click.version_option(version=__version__, prog_name="toolhub")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to toolhub.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """toolhub — inventory of developer CLI tools across environments."""
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    configure_cli_logging(debug=debug, verbose=verbose, quiet=quiet)


# ── Helpers ─────────────────────────────────────────────────────────


def _registry(ctx: click.Context) -> ToolRegistry:
    """Build the registry, or reuse one injected via ``ctx.obj`` (tests)."""
    registry = ctx.obj.get("registry")
    if registry is not None:
        return registry
    try:
        settings = load_settings(ctx.obj.get("config_path"))
        registry = ToolRegistry.from_settings(settings)
    except (ConfigError, ToolhubError) as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)
    ctx.obj["registry"] = registry
    return registry


def _run(coro):
    """Run one registry coroutine, mapping toolhub errors to exit 1."""
    try:
        return asyncio.run(coro)
    except ToolhubError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2))


def _echo_statuses(statuses: list[ToolStatus]) -> None:
    click.echo()
    for s in statuses:
        if s.installed:
            click.secho(f"   ✅ {s.name}", fg="green", nl=False)
            click.echo(f"  {s.version or 'unknown version'}")
        else:
            click.secho(f"   ○  {s.name}", fg="white", nl=False)
            click.echo("  not installed")
    click.echo()


def _echo_instance(inst: ToolInstance) -> None:
    marker = "✓" if inst.installed else "✗"
    where = inst.wsl_distro or (inst.ssh_config.slug if inst.ssh_config else "")
    where_label = f" @ {where}" if where else ""
    version = f" {inst.version}" if inst.version else ""
    click.echo(f"     {marker} {inst.instance_id} [{inst.tool_type}]{where_label}{version}")
    if inst.install_path:
        click.echo(f"       → {inst.install_path}")


# ── Read model ──────────────────────────────────────────────────────


@cli.command()
@click.option("--refresh", is_flag=True, help="Re-detect before reporting.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, refresh: bool, as_json: bool) -> None:
    """Show installed / version status of every tool."""
    registry = _registry(ctx)
    if refresh:
        statuses = _run(registry.refresh_and_get_local_status())
    else:
        statuses = _run(registry.get_cached_local_status())

    if as_json:
        _echo_json([s.model_dump(mode="json") for s in statuses])
        return
    _echo_statuses(statuses)


@cli.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_instances(ctx: click.Context, as_json: bool) -> None:
    """List stored instances grouped by tool."""
    grouped = _run(_registry(ctx).get_all_grouped())

    if as_json:
        _echo_json({
            tool_id: [i.model_dump(mode="json") for i in instances]
            for tool_id, instances in grouped.items()
        })
        return

    click.echo()
    for tool_id, instances in grouped.items():
        click.secho(f"   {tool_id}: {len(instances)}", fg="white", bold=True)
        for inst in instances:
            _echo_instance(inst)
    click.echo()


# ── Detection ───────────────────────────────────────────────────────


@cli.command()
@click.argument("tool_id", required=False)
@click.option("--force", is_flag=True, help="Re-detect even if already stored.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def detect(ctx: click.Context, tool_id: str | None, force: bool, as_json: bool) -> None:
    """Detect local tools (all, or one TOOL_ID) and save the results."""
    registry = _registry(ctx)

    if tool_id:
        statuses = [_run(registry.detect_single_tool_with_cache(tool_id, force))]
    else:
        instances = _run(registry.detect_and_persist_local_tools())
        statuses = [
            ToolStatus(id=i.base_id, name=i.tool_name, installed=i.installed, version=i.version)
            for i in instances
        ]

    if as_json:
        _echo_json([s.model_dump(mode="json") for s in statuses])
        return
    _echo_statuses(statuses)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def refresh(ctx: click.Context, as_json: bool) -> None:
    """Re-detect local tools and drop uninstalled ones."""
    instances = _run(_registry(ctx).refresh_local_tools())

    if as_json:
        _echo_json([i.model_dump(mode="json") for i in instances])
        return

    if not instances:
        click.secho("⚠️  No tools installed", fg="yellow")
        return
    click.secho(f"✅ {len(instances)} tool(s) installed", fg="green", bold=True)
    for inst in instances:
        _echo_instance(inst)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def versions(ctx: click.Context, as_json: bool) -> None:
    """Re-read the version of every stored local instance."""
    statuses = _run(_registry(ctx).refresh_all_tool_versions())

    if as_json:
        _echo_json([s.model_dump(mode="json") for s in statuses])
        return
    if not statuses:
        click.secho("⚠️  No local instances stored — run 'toolhub detect' first", fg="yellow")
        return
    _echo_statuses(statuses)


# ── Manual registration ─────────────────────────────────────────────


@cli.command()
@click.argument("tool_id")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def scan(ctx: click.Context, tool_id: str, as_json: bool) -> None:
    """Find every local executable of TOOL_ID."""
    candidates = _run(_registry(ctx).scan_tool_candidates(tool_id))

    if as_json:
        _echo_json([c.model_dump(mode="json") for c in candidates])
        return

    if not candidates:
        click.secho(f"⚠️  No executables found for {tool_id}", fg="yellow")
        return
    click.secho(f"\n🔍 {len(candidates)} candidate(s) for {tool_id}", fg="cyan", bold=True)
    for c in candidates:
        click.echo(f"   • {c.tool_path}  {c.version}  [{c.install_method}]")
        if c.installer_path:
            click.echo(f"     installer: {c.installer_path}")
    click.echo()


@cli.command()
@click.argument("path")
@click.pass_context
def validate(ctx: click.Context, path: str) -> None:
    """Check that PATH is a tool executable answering --version."""
    output = _run(_registry(ctx).validate_tool_path(path))
    click.secho(f"✅ {output}", fg="green")


@cli.command()
@click.argument("tool_id")
@click.argument("path")
@click.option(
    "--method",
    type=click.Choice([m.value for m in InstallMethod]),
    default=InstallMethod.OTHER.value,
    show_default=True,
    help="How the tool was installed.",
)
@click.option("--installer", "installer_path", default=None, help="Path to npm/brew/installer.")
@click.pass_context
def add(
    ctx: click.Context,
    tool_id: str,
    path: str,
    method: str,
    installer_path: str | None,
) -> None:
    """Register PATH as a local instance of TOOL_ID."""
    result = _run(
        _registry(ctx).add_tool_instance(tool_id, path, InstallMethod(method), installer_path)
    )
    click.secho(f"✅ Added {result.name} {result.version or ''}".rstrip(), fg="green")


@cli.command("add-wsl")
@click.argument("tool_id")
@click.argument("distro")
@click.pass_context
def add_wsl(ctx: click.Context, tool_id: str, distro: str) -> None:
    """Register TOOL_ID inside the WSL distro DISTRO."""
    inst = _run(_registry(ctx).add_wsl_instance(tool_id, distro))
    click.secho(f"✅ Added {inst.instance_id}", fg="green")
    _echo_instance(inst)


@cli.command("add-ssh")
@click.argument("tool_id")
@click.option("--host", required=True, help="SSH host.")
@click.option("--port", default=22, show_default=True, type=int, help="SSH port.")
@click.option("--user", required=True, help="SSH user.")
@click.option("--key-path", default=None, help="Private key file.")
@click.pass_context
def add_ssh(
    ctx: click.Context,
    tool_id: str,
    host: str,
    port: int,
    user: str,
    key_path: str | None,
) -> None:
    """Register TOOL_ID on a remote SSH host."""
    config = SSHConfig(host=host, port=port, user=user, key_path=key_path)
    inst = _run(_registry(ctx).add_ssh_instance(tool_id, config))
    click.secho(f"✅ Added {inst.instance_id}", fg="green")


@cli.command()
@click.argument("instance_id")
@click.pass_context
def delete(ctx: click.Context, instance_id: str) -> None:
    """Delete a user-added SSH instance."""
    _run(_registry(ctx).delete_instance(instance_id))
    click.secho(f"🗑  Deleted {instance_id}", fg="green")


# ── Updates ─────────────────────────────────────────────────────────


@cli.command()
@click.argument("instance_id")
@click.option("--force", is_flag=True, help="Reinstall even if up to date.")
@click.pass_context
def update(ctx: click.Context, instance_id: str, force: bool) -> None:
    """Update a local instance through its installer."""
    result = _run(_registry(ctx).update_instance(instance_id, force))
    color = "green" if result.success else "red"
    click.secho(f"{'✅' if result.success else '❌'} {result.message}", fg=color)
    if not result.success:
        sys.exit(1)


@cli.command("check-update")
@click.argument("instance_id")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check_update(ctx: click.Context, instance_id: str, as_json: bool) -> None:
    """Compare a local instance with the latest published version."""
    result = _run(_registry(ctx).check_update_for_instance(instance_id))

    if as_json:
        _echo_json(result.model_dump(mode="json"))
        return

    click.echo(f"   Current: {result.current_version or 'unknown'}")
    if result.latest_version:
        click.echo(f"   Latest:  {result.latest_version}")
    if result.mirror_is_stale:
        click.secho(f"   ⚠️  Mirror is behind ({result.mirror_version})", fg="yellow")
    if result.has_update:
        click.secho("   ⬆️  Update available", fg="cyan", bold=True)
    else:
        click.echo(f"   {result.message}")


if __name__ == "__main__":
    cli()
