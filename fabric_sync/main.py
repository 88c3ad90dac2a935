#!/usr/bin/env python3
"""CLI entry point for the Fabric workspace sync system."""

import argparse
import logging
import sys
import threading
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.tree import Tree

from .core.auth import EnvCredentialSource
from .core.client import FabricClient
from .core.engine import SyncEngine
from .core.errors import AuthError, RemoteError
from .core.folders import FolderHierarchy
from .models.config import DEFAULT_CONFIG_FILENAME, SyncConfig, WorkspaceConfig
from .models.results import Affordance, RunStatus, SyncRunResult

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _load_config(args: argparse.Namespace) -> SyncConfig:
    return SyncConfig.load(Path(args.config))


def _resolve_workspace(config: SyncConfig, args: argparse.Namespace) -> WorkspaceConfig:
    """Find the configured workspace, or treat the argument as a raw id."""
    ws = config.get_workspace(args.workspace)
    if ws is None:
        ws = WorkspaceConfig(name=args.workspace, workspace_id=args.workspace, local_path=".")
    if getattr(args, "output", None):
        ws.local_path = args.output
    return ws


def _build_engine(config: SyncConfig, ws: WorkspaceConfig, base_dir: Path) -> SyncEngine:
    client = FabricClient(timeout=config.settings.request_timeout)
    return SyncEngine.from_config(ws, config.settings, EnvCredentialSource(), client, base_dir)


def cmd_verify_auth(args: argparse.Namespace) -> int:
    """Verify API authentication."""
    console.print("Verifying Fabric API credentials...", style="blue")

    try:
        credential = EnvCredentialSource().require()
        if FabricClient().verify_connection(credential.token):
            label = f" as {credential.account_label}" if credential.account_label else ""
            console.print(f"[green]Authentication successful{label}!")
            return 0
        console.print("[red]API returned unexpected response")
    except AuthError as e:
        console.print(f"[red]Authentication failed: {e}")
        console.print("Set FABRIC_ACCESS_TOKEN in the environment or a .env file.")
    except RemoteError as e:
        console.print(f"[red]API error: {e}")

    return 1


def cmd_workspaces(args: argparse.Namespace) -> int:
    """List workspaces visible to the credential."""
    try:
        token = EnvCredentialSource().require().token
        workspaces = FabricClient().list_workspaces(token)
    except (AuthError, RemoteError) as e:
        console.print(f"[red]Failed to list workspaces: {e}")
        return 1

    if not workspaces:
        console.print("[yellow]No workspaces found")
        return 0

    table = Table(title="Workspaces")
    table.add_column("Name", style="cyan")
    table.add_column("ID", style="dim")
    for ws in workspaces:
        table.add_row(ws.name, ws.id)
    console.print(table)
    return 0


def cmd_tree(args: argparse.Namespace) -> int:
    """Show the folder tree of a workspace."""
    config = _load_config(args)
    ws = _resolve_workspace(config, args)

    try:
        token = EnvCredentialSource().require().token
        folders = FabricClient(timeout=config.settings.request_timeout).list_folders(token, ws.workspace_id)
    except (AuthError, RemoteError) as e:
        console.print(f"[red]Failed to fetch folders: {e}")
        return 1

    tree = Tree(f"[bold blue]{ws.name}[/bold blue]")
    _add_tree_nodes(tree, FolderHierarchy(folders).to_tree())
    console.print(tree)
    return 0


def _add_tree_nodes(parent: Tree, data: dict) -> None:
    """Recursively add nodes to tree."""
    for folder in data.get("folders", []):
        folder_node = parent.add(f"[blue]{folder['name']}/[/blue]")
        _add_tree_nodes(folder_node, folder)


def cmd_status(args: argparse.Namespace) -> int:
    """Show git divergence for a workspace."""
    config = _load_config(args)
    ws = _resolve_workspace(config, args)
    engine = _build_engine(config, ws, Path.cwd())

    try:
        report = engine.status(ws.workspace_id)
    except (AuthError, RemoteError) as e:
        console.print(f"[red]Failed to fetch status: {e}")
        return 1

    if not report.configured:
        console.print("[yellow]Git not configured for this workspace")
        return 0

    console.print(f"\n[bold]Workspace head:[/bold] {report.workspace_head or 'unknown'}")
    console.print(f"[bold]Local revision:[/bold] {report.local_revision or '[dim]not a git checkout'}")

    if report.synced:
        console.print("[green]Synced with Git")
    else:
        table = Table(title="Changes")
        table.add_column("Item", style="cyan")
        table.add_column("Type")
        table.add_column("Change", style="yellow")
        for entry in report.changes:
            item_type = entry.change.item_type or (entry.item.type if entry.item else "")
            table.add_row(entry.display_name, item_type, entry.change.kind)
        console.print(table)

    if report.affordance == Affordance.SHOW_DIFF:
        console.print("\nLocal checkout is at the workspace head. Use 'git diff' to review local edits.")
    else:
        console.print(f"\nLocal checkout differs from the workspace head. Run 'fabric-sync pull {args.workspace}'.")
    return 0


def _run_cancellable(target, cancel_event: threading.Event, description: str) -> SyncRunResult:
    """Run a sync in a worker thread so Ctrl-C can cancel it."""
    outcome: list[SyncRunResult] = []
    errors: list[BaseException] = []

    def run() -> None:
        try:
            outcome.append(target())
        except Exception as e:
            errors.append(e)

    worker = threading.Thread(target=run, daemon=True)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        progress.add_task(description=description, total=None)
        worker.start()
        while worker.is_alive():
            try:
                worker.join(timeout=0.2)
            except KeyboardInterrupt:
                console.print("[yellow]Cancelling...")
                cancel_event.set()

    if errors:
        raise errors[0]
    return outcome[0]


def cmd_pull(args: argparse.Namespace) -> int:
    """Pull item definitions from a workspace."""
    config = _load_config(args)
    ws = _resolve_workspace(config, args)
    engine = _build_engine(config, ws, Path.cwd())
    item_types = args.type or ws.item_types or None

    if args.dry_run:
        try:
            entries, skipped = engine.plan_workspace(ws.workspace_id, item_types)
        except (AuthError, RemoteError) as e:
            console.print(f"[red]Failed to plan: {e}")
            return 1
        console.print("[yellow](DRY RUN - no changes will be made)")
        for entry in entries:
            console.print(f"  Would pull {entry.item_dir}")
        for skip in skipped:
            console.print(f"[dim]  {skip.label}: {skip.reason}[/dim]")
        return 0

    cancel_event = threading.Event()
    if args.item:
        target = lambda: engine.sync_items(ws.workspace_id, args.item, cancel_event)  # noqa: E731
    elif args.all:
        target = lambda: engine.sync_all(ws.workspace_id, item_types, cancel_event)  # noqa: E731
    else:
        target = lambda: engine.sync_changes(ws.workspace_id, cancel_event)  # noqa: E731

    result = _run_cancellable(target, cancel_event, f"Pulling {ws.name}...")
    _print_result(result, verbose=args.verbose or config.settings.verbose)
    return 0 if result.success else 1


def _print_result(result: SyncRunResult, verbose: bool = False) -> None:
    if result.status == RunStatus.NOT_CONFIGURED:
        console.print("[yellow]Git not configured for this workspace")
        return
    if result.status == RunStatus.ERROR:
        console.print(f"[red]Sync failed: {result.message}")
        return

    for ok in result.succeeded_items:
        console.print(f"[green]Pulled {ok.path}")
    for failed in result.failed_items:
        console.print(f"[red]FAILED: {failed.item.display_name} ({failed.error_kind})")
        console.print(f"        {failed.reason}")
        if failed.partial_files:
            console.print(f"        partially written: {', '.join(failed.partial_files)}")
    if verbose:
        for skip in result.skipped:
            console.print(f"[dim]{skip.label}: {skip.reason}[/dim]")
    if result.message:
        console.print(f"[yellow]{result.message}")

    console.print(
        f"\n[bold]Summary:[/bold] {result.status}: {len(result.succeeded_items)} pulled, "
        f"{len(result.skipped)} skipped, {len(result.failed_items)} failed"
    )


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="fabric-sync",
        description="Pull Fabric workspace item definitions into a local git repo",
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG_FILENAME, help="Path to config YAML")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("verify-auth", help="Verify API authentication")
    subparsers.add_parser("workspaces", help="List workspaces")

    tree_parser = subparsers.add_parser("tree", help="Show folder structure of a workspace")
    tree_parser.add_argument("workspace", help="Configured workspace name or workspace ID")

    status_parser = subparsers.add_parser("status", help="Show git status of a workspace")
    status_parser.add_argument("workspace", help="Configured workspace name or workspace ID")

    pull_parser = subparsers.add_parser("pull", help="Pull item definitions")
    pull_parser.add_argument("workspace", help="Configured workspace name or workspace ID")
    pull_parser.add_argument("--output", "-o", help="Local directory (overrides config)")
    pull_parser.add_argument("--all", action="store_true", help="Pull every item, not only changed ones")
    pull_parser.add_argument("--item", nargs="+", help="Specific item IDs to pull")
    pull_parser.add_argument("--type", nargs="+", help="Only items of these types (with --all)")
    pull_parser.add_argument("--dry-run", action="store_true", help="Show where items would be written")

    args = parser.parse_args()
    _setup_logging(args.verbose)

    if args.command == "verify-auth":
        return cmd_verify_auth(args)
    elif args.command == "workspaces":
        return cmd_workspaces(args)
    elif args.command == "tree":
        return cmd_tree(args)
    elif args.command == "status":
        return cmd_status(args)
    elif args.command == "pull":
        return cmd_pull(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
