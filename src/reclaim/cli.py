"""CLI interface for Reclaim."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict
from pathlib import Path

import click

from reclaim.core.app_estimates import AppEstimator
from reclaim.core.memory import MemoryEstimator
from reclaim.core.permissions import FilesystemPermission
from reclaim.core.scanner import JunkScanner, ScanRoots
from reclaim.core.storage_info import APP_CACHE_GLOB, StorageEstimator
from reclaim.core.tracker import Tracker
from reclaim.models.junk import JunkEntry
from reclaim.models.snapshots import MemorySnapshot, StorageSnapshot
from reclaim.settings import Settings
from reclaim.utils import bytes_to_human, format_elapsed, mb_to_human


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _build_scanner(root: str | None) -> JunkScanner:
    storage_root = Path(root) if root else Settings.instance().storage_root
    permission = FilesystemPermission(storage_root)
    if not permission.has_permission() and not permission.request_permission():
        click.echo(
            click.style(f"Warning: cannot read {storage_root}, results will be incomplete", fg="yellow"),
            err=True,
        )
    return JunkScanner(ScanRoots.for_storage_root(storage_root))


def _entry_dict(entry: JunkEntry) -> dict:
    return {
        "path": str(entry.path),
        "kind": entry.kind.value,
        "size_bytes": entry.size_bytes,
        "category": entry.category.value if entry.category else None,
        "is_empty_dir": entry.is_empty_dir,
    }


def _scan_dict(scanner: JunkScanner) -> dict:
    return {
        "total_bytes": scanner.total_bytes,
        "cache_bytes": scanner.cache_bytes,
        "temp_bytes": scanner.temp_bytes,
        "big_bytes": scanner.big_bytes,
        "count": scanner.count,
        "skipped": scanner.skipped_count,
        "categories_valid": scanner.categories_valid,
        "entries": [_entry_dict(e) for e in scanner.entries],
    }


def _memory_dict(snapshot: MemorySnapshot) -> dict:
    data = asdict(snapshot)
    data["usage_percent"] = snapshot.usage_percent
    return data


def _storage_dict(snapshot: StorageSnapshot) -> dict:
    data = asdict(snapshot)
    data["usage_percent"] = snapshot.usage_percent
    return data


def _print_breakdown(scanner: JunkScanner) -> None:
    rows = (
        ("Cache files", scanner.cache_bytes),
        ("Temporary files", scanner.temp_bytes),
        ("Big files", scanner.big_bytes),
    )
    for label, size in rows:
        marker = click.style("✓", fg="green") if size else click.style("·", fg="bright_black")
        click.echo(f"  {marker} {label:20s} — {bytes_to_human(size)}")
    click.echo(f"\n  Items: {scanner.count:,}")
    if scanner.skipped_count:
        click.echo(f"  Skipped: {scanner.skipped_count:,} unreadable paths")


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
def main(verbose: int) -> None:
    """Reclaim — find and remove junk files, estimate memory and storage."""
    _setup_logging(verbose)


# ── scan ─────────────────────────────────────────────────────────────────

@main.command()
@click.option("--root", default=None, help="Storage root to scan (default from settings)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def scan(root: str | None, as_json: bool) -> None:
    """Scan for junk files (preview only, never deletes)."""
    scanner = _build_scanner(root)

    if not as_json:
        click.echo(f"\n{click.style('🔍', bold=True)} Scanning {scanner.roots.storage_root}...\n")

    start = time.monotonic()
    scanner.scan()
    elapsed = time.monotonic() - start

    if as_json:
        click.echo(json.dumps(_scan_dict(scanner), indent=2))
        return

    _print_breakdown(scanner)
    click.echo(
        f"\nTotal junk: {click.style(bytes_to_human(scanner.total_bytes), fg='green', bold=True)}"
        f" (in {format_elapsed(elapsed)})\n"
    )


# ── clean ────────────────────────────────────────────────────────────────

@main.command()
@click.option("--root", default=None, help="Storage root to scan (default from settings)")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.option("--dry-run", is_flag=True, help="Show what would be cleaned without doing it")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def clean(root: str | None, yes: bool, dry_run: bool, as_json: bool) -> None:
    """Scan and delete junk files."""
    scanner = _build_scanner(root)

    if not as_json:
        click.echo(f"\n{click.style('🔍', bold=True)} Scanning...\n")
    scanner.scan()

    if scanner.count == 0:
        if as_json:
            click.echo(json.dumps({"status": "nothing_to_clean"}))
        else:
            click.echo("Nothing to clean.")
        return

    if not as_json:
        _print_breakdown(scanner)
        click.echo(f"\nTotal: {click.style(bytes_to_human(scanner.total_bytes), fg='green', bold=True)}\n")

    if dry_run:
        if as_json:
            click.echo(json.dumps({"status": "dry_run", "scan": _scan_dict(scanner)}, indent=2))
        else:
            click.echo("(dry run — no files were deleted)")
        return

    if not yes and not as_json:
        if not click.confirm("Delete these files?", default=False):
            click.echo("Aborted.")
            return

    if not as_json:
        click.echo(f"\n{click.style('🧹', bold=True)} Cleaning...\n")

    result = scanner.clean_detailed()
    tracker = Tracker()
    tracker.record(result)
    tracker.save_session()

    if as_json:
        click.echo(json.dumps({"status": "cleaned", "result": asdict(result)}, indent=2))
        return

    if result.errors:
        click.echo(f"  {click.style('!', fg='yellow')} {len(result.errors)} item(s) could not be removed")
    click.echo(
        f"Total freed: {click.style(bytes_to_human(result.freed_bytes), fg='green', bold=True)} "
        f"({result.files_removed:,} files)\n"
    )


# ── memory ───────────────────────────────────────────────────────────────

@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def memory(as_json: bool) -> None:
    """Show memory usage and the estimated physical RAM size."""
    snapshot = MemoryEstimator().read_memory()

    if as_json:
        click.echo(json.dumps(_memory_dict(snapshot), indent=2))
        return

    click.echo(f"\n  Physical RAM:   {click.style(mb_to_human(snapshot.physical_mb), bold=True)}")
    click.echo(f"  Total:          {mb_to_human(snapshot.total_mb)}")
    click.echo(f"  Used:           {mb_to_human(snapshot.used_mb)} ({snapshot.usage_percent:.0f}%)")
    click.echo(f"  Available:      {mb_to_human(snapshot.available_mb)}")
    click.echo(f"  Can free up:    {click.style(mb_to_human(snapshot.freeable_mb), fg='green')}")
    if snapshot.has_swap:
        click.echo(f"  Virtual (swap): {mb_to_human(snapshot.swap_mb)}")
    if snapshot.is_fallback:
        click.echo(click.style("  (estimated — memory counters unavailable)", fg="bright_black"))
    click.echo()


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def optimize(as_json: bool) -> None:
    """Ask the system to release cached memory."""
    estimator = MemoryEstimator(settle_seconds=Settings.instance().settle_seconds)
    freed = estimator.optimize()

    if as_json:
        click.echo(json.dumps({"freed_mb": freed}))
        return
    click.echo(f"\nFreed: {click.style(mb_to_human(freed), fg='green', bold=True)}\n")


# ── storage ──────────────────────────────────────────────────────────────

@main.command()
@click.option("--path", default=None, help="Filesystem to inspect (default from settings)")
@click.option("--downloads", is_flag=True, help="Report the Downloads folder size as used space")
@click.option("--root", default=None, help="Storage root holding Downloads (with --downloads)")
@click.option("--app-caches", is_flag=True, help="Also report the size of per-app cache directories")
@click.option("--cache-glob", default=APP_CACHE_GLOB, show_default=True, help="Pattern matching app cache directories")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def storage(
    path: str | None,
    downloads: bool,
    root: str | None,
    app_caches: bool,
    cache_glob: str,
    as_json: bool,
) -> None:
    """Show disk usage and the estimated marketed capacity."""
    settings = Settings.instance()
    estimator = StorageEstimator(Path(path) if path else settings.storage_path)
    if downloads:
        storage_root = Path(root) if root else settings.storage_root
        snapshot = estimator.downloads_usage(ScanRoots.for_storage_root(storage_root))
    else:
        snapshot = estimator.read_storage()
    caches = estimator.app_caches_size(cache_glob) if app_caches else None

    if as_json:
        data = _storage_dict(snapshot)
        if caches is not None:
            data["app_caches_bytes"] = caches
        click.echo(json.dumps(data, indent=2))
        return

    used_label = "Downloads:" if downloads else "Used:"
    click.echo(f"\n  Marketed size:  {click.style(f'{snapshot.marketed_gb} GB', bold=True)}")
    click.echo(f"  Total:          {snapshot.total_gb:.1f} GB")
    click.echo(f"  {used_label:16s}{snapshot.used_gb:.1f} GB ({snapshot.usage_percent:.0f}%)")
    click.echo(f"  Free:           {snapshot.free_gb:.1f} GB")
    if caches is not None:
        click.echo(f"  App caches:     {bytes_to_human(caches)}")
    if snapshot.is_fallback:
        click.echo(click.style("  (estimated — disk usage unavailable)", fg="bright_black"))
    click.echo()


# ── apps ─────────────────────────────────────────────────────────────────

@main.command()
@click.argument("packages", nargs=-1, required=True)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def apps(packages: tuple[str, ...], as_json: bool) -> None:
    """Show estimated size and data usage for app packages.

    These figures are guesses derived from package names, not measurements.
    """
    estimates = AppEstimator().estimates(packages)

    if as_json:
        click.echo(json.dumps([asdict(e) for e in estimates], indent=2))
        return

    click.echo()
    for app in estimates:
        system_tag = click.style(" [system]", fg="yellow") if app.is_system else ""
        click.echo(
            f"  {app.package:40s} ~{app.size_mb:5.0f} MB  "
            f"data ~{app.data_usage_mb:6.0f} MB{system_tag}"
        )
    click.echo(click.style("\n  (estimates, not measured)\n", fg="bright_black"))


# ── stats ────────────────────────────────────────────────────────────────

@main.command()
@click.option("--period", "-p", default="all", type=click.Choice(["today", "week", "month", "all"]))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def stats(period: str, as_json: bool) -> None:
    """Show space freed statistics."""
    data = Tracker().get_stats(period)

    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(f"\n{click.style('📊', bold=True)} Statistics ({period})\n")
    click.echo(f"  Bytes freed:    {click.style(bytes_to_human(data['bytes_freed']), fg='green', bold=True)}")
    click.echo(f"  Files removed:  {data['files_removed']:,}")
    click.echo(f"  Sessions:       {data['session_count']}")
    click.echo(f"  Lifetime total: {click.style(bytes_to_human(data['lifetime_bytes_freed']), fg='cyan', bold=True)}")

    if data["per_category"]:
        click.echo("\n  Per-category breakdown:")
        for category, freed in sorted(data["per_category"].items(), key=lambda x: x[1], reverse=True):
            click.echo(f"    {category:15s} {bytes_to_human(freed):>10s}")
    click.echo()


# ── config ───────────────────────────────────────────────────────────────

@main.group()
def config() -> None:
    """Settings management commands."""


@config.command("get")
@click.argument("key")
def config_get(key: str) -> None:
    """Print a setting by dot-notation key."""
    settings = Settings.instance()
    if key not in settings:
        click.echo(f"Setting '{key}' not found.", err=True)
        raise SystemExit(1)
    click.echo(json.dumps(settings.get(key)))


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Store a setting; VALUE is parsed as JSON when possible."""
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        parsed = value
    Settings.instance().set(key, parsed)


# ── service ──────────────────────────────────────────────────────────────

@main.group()
def service() -> None:
    """D-Bus service management."""


@service.command("start")
def service_start() -> None:
    """Start the D-Bus service in foreground."""
    from reclaim.dbus_service import start_service

    click.echo("Starting Reclaim D-Bus service...")
    start_service()
