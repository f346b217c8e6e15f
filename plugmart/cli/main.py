"""Main CLI application for plugmart."""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from plugmart import __version__
from plugmart.config.parser import ConfigError, registry_manifest_path
from plugmart.config.schemas import DEFAULT_PLUGIN_ROOT
from plugmart.core.conflict import ConflictPolicy
from plugmart.core.errors import RegistryError
from plugmart.core.registry import RegistryConfig
from plugmart.core.validation import ValidationResult, validate_plugin, validate_registry
from plugmart.ops.add import execute_add, plan_add
from plugmart.ops.init import init_registry
from plugmart.ops.prune import prune_plugins
from plugmart.ops.remove import remove_plugins
from plugmart.ops.update import update_plugins
from plugmart.utils.version import VersionBump

app = typer.Typer(
    name="plugmart",
    help="Manage a file-based plugin marketplace",
    add_completion=False,
    no_args_is_help=True,
)
validate_app = typer.Typer(help="Validate plugins and marketplaces", no_args_is_help=True)
app.add_typer(validate_app, name="validate")

console = Console()
error_console = Console(stderr=True)

logger = logging.getLogger("plugmart")

DEFAULT_MARKETPLACE = registry_manifest_path(Path("."))

# Errors reported to the user as a one-line failure
OPERATION_ERRORS = (RegistryError, ConfigError, ValueError, OSError)

MarketplaceOption = Annotated[
    Path,
    typer.Option(
        "--marketplace",
        "-m",
        help="Path to .claude-plugin/marketplace.json",
    ),
]


def setup_logging(verbosity: int) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbosity: 0=WARNING, 1=INFO, 2+=DEBUG
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logger.setLevel(level)

    if not logger.handlers:
        handler = RichHandler(
            console=error_console,
            show_time=verbosity >= 2,
            show_path=verbosity >= 3,
            rich_tracebacks=True,
        )
        handler.setLevel(level)
        logger.addHandler(handler)
    else:
        for h in logger.handlers:
            h.setLevel(level)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]Error:[/red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]⚠[/yellow] {message}")


def load_config(marketplace: Path) -> RegistryConfig:
    """Load the registry, exiting with an error if it cannot be loaded."""
    try:
        return RegistryConfig.load(marketplace)
    except ConfigError as e:
        print_error(str(e))
        if not marketplace.exists():
            print_error("Run 'plugmart init' to create a new marketplace")
        raise typer.Exit(1) from e


def report(result: ValidationResult, subject: str) -> None:
    """Print diagnostics and exit non-zero if any are errors."""
    for diagnostic in result.errors:
        print_error(diagnostic.message)
    for diagnostic in result.warnings:
        print_warning(diagnostic.message)

    if result.has_errors:
        print_error(
            f"{subject} failed validation "
            f"({result.error_count} error(s), {result.warning_count} warning(s))"
        )
        raise typer.Exit(1)
    print_success(f"{subject} is valid")


@app.callback()
def callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Increase verbosity (-v info, -vv debug)",
        ),
    ] = 0,
) -> None:
    """plugmart - manage a file-based plugin marketplace."""
    setup_logging(verbose)


@app.command()
def version() -> None:
    """Show the plugmart version."""
    console.print(f"plugmart {__version__}")


@app.command()
def init(
    path: Annotated[
        Path | None,
        typer.Option(
            "--path",
            "-p",
            help="Project directory (defaults to current directory)",
        ),
    ] = None,
    plugin_root: Annotated[
        str,
        typer.Option("--plugin-root", help="Plugin directory, relative to the project"),
    ] = DEFAULT_PLUGIN_ROOT,
) -> None:
    """Create an empty marketplace."""
    path = Path.cwd() if path is None else path.resolve()

    try:
        manifest_path = init_registry(path, plugin_root)
    except OPERATION_ERRORS as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    print_success("Initialized marketplace")
    console.print(f"  Created: {manifest_path}")


@app.command()
def add(
    plugins: Annotated[list[str], typer.Argument(help="Plugin paths or names")],
    marketplace: MarketplaceOption = DEFAULT_MARKETPLACE,
    on_conflict: Annotated[
        ConflictPolicy,
        typer.Option("--on-conflict", help="What to do when a name is already registered"),
    ] = ConflictPolicy.ABORT,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be added without changing anything"),
    ] = False,
    no_copy: Annotated[
        bool,
        typer.Option("--no-copy", help="Register external plugins in place instead of copying"),
    ] = False,
) -> None:
    """Add plugins to the marketplace."""
    config = load_config(marketplace)

    try:
        plan = plan_add(plugins, config, on_conflict, no_copy=no_copy)
        added = execute_add(plan, config, dry_run=dry_run)
    except OPERATION_ERRORS as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    for name in plan.skipped_names:
        print_warning(f"Skipped {name} (already registered)")
    if not added:
        console.print("No plugins to add")
        return

    prefix = "Would add" if dry_run else "Added"
    for name in added:
        print_success(f"{prefix} {name}")


@app.command()
def remove(
    plugins: Annotated[list[str], typer.Argument(help="Plugin names to remove")],
    marketplace: MarketplaceOption = DEFAULT_MARKETPLACE,
    delete: Annotated[
        bool,
        typer.Option("--delete", help="Also delete the plugin directories"),
    ] = False,
    allow_external_delete: Annotated[
        bool,
        typer.Option(
            "--allow-external-delete",
            help="Permit deleting directories outside the plugin root",
        ),
    ] = False,
) -> None:
    """Remove plugins from the marketplace."""
    config = load_config(marketplace)

    try:
        result = remove_plugins(
            plugins, config, delete=delete, allow_external_delete=allow_external_delete
        )
    except OPERATION_ERRORS as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    for name in result.removed:
        print_success(f"Removed {name}")
    for warning in result.warnings:
        print_warning(warning)


@app.command()
def update(
    plugins: Annotated[list[str], typer.Argument(help="Plugin names to update")],
    marketplace: MarketplaceOption = DEFAULT_MARKETPLACE,
    major: Annotated[bool, typer.Option("--major", help="Bump the major version")] = False,
    minor: Annotated[bool, typer.Option("--minor", help="Bump the minor version")] = False,
    patch: Annotated[bool, typer.Option("--patch", help="Bump the patch version")] = False,
) -> None:
    """Refresh registry entries from their plugin manifests."""
    bumps = [
        kind
        for kind, flag in (
            (VersionBump.MAJOR, major),
            (VersionBump.MINOR, minor),
            (VersionBump.PATCH, patch),
        )
        if flag
    ]
    if len(bumps) > 1:
        print_error("Use only one of --major, --minor and --patch")
        raise typer.Exit(1)

    config = load_config(marketplace)

    try:
        result = update_plugins(plugins, config, bump=bumps[0] if bumps else None)
    except OPERATION_ERRORS as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    for name in result.updated:
        print_success(f"Updated {name}")
    for warning in result.warnings:
        print_warning(warning)


@app.command()
def prune(
    marketplace: MarketplaceOption = DEFAULT_MARKETPLACE,
    apply: Annotated[
        bool,
        typer.Option("--apply", help="Delete orphaned directories instead of listing them"),
    ] = False,
) -> None:
    """List or delete plugin directories not in the marketplace."""
    config = load_config(marketplace)
    result = prune_plugins(config, apply=apply)

    if not result.orphaned:
        console.print("No orphaned plugin directories")
        return

    if not apply:
        console.print(f"Orphaned plugin directories ({len(result.orphaned)}):")
        for path in result.orphaned:
            console.print(f"  {path.name}")
        console.print("Run with --apply to delete them")
        return

    for path in result.deleted:
        print_success(f"Deleted {path.name}")
    for warning in result.warnings:
        print_warning(warning)


@validate_app.command("plugin")
def validate_plugin_command(
    path: Annotated[Path, typer.Argument(help="Plugin directory")],
) -> None:
    """Validate a single plugin directory."""
    report(validate_plugin(path), f"Plugin {path.name}")


@validate_app.command("registry")
def validate_registry_command(
    marketplace: MarketplaceOption = DEFAULT_MARKETPLACE,
    skip_plugins: Annotated[
        bool,
        typer.Option("--skip-plugins", help="Do not validate each registered plugin"),
    ] = False,
) -> None:
    """Validate the marketplace and, by default, every registered plugin."""
    config = load_config(marketplace)
    report(validate_registry(config, skip_plugin_validation=skip_plugins), "Marketplace")


if __name__ == "__main__":
    app()
