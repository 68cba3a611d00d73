"""Click-based CLI for SITEPUB - Static Site Publisher."""

from __future__ import annotations

import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

import click
import yaml

from sitepub import __version__
from sitepub.config import (
    PublisherConfig,
    ensure_config_exists,
    get_config_path,
    load_config,
    validate_config_file,
)
from sitepub.errors import PublishError
from sitepub.logger import PublishLogger
from sitepub.output import Console, create_console
from sitepub.publish import (
    AccessBinder,
    ErrorRoutingTable,
    PublishResult,
    ignore_patterns,
    publish_from_config,
    routes_from_config,
    scan_paths,
)
from sitepub.storage import create_cdn, create_storage

config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Configuration file (default: ~/.config/sitepub/config.yaml or $SITEPUB_CONFIG)",
)


@click.group()
@click.version_option(version=__version__, prog_name="sitepub")
def cli() -> None:
    """SITEPUB - Static Site Publisher.

    Publishes a directory of built site assets to object storage, grants
    read access to exactly one CDN distribution and invalidates changed
    paths on the CDN.

    \b
    Workflow:
      sitepub config init      Create a configuration template
      sitepub plan             Preview what would be uploaded
      sitepub publish          Upload, bind access and invalidate
    """
    pass


def _load_or_exit(console: Console, config_path: Optional[Path]) -> PublisherConfig:
    try:
        return load_config(config_path)
    except PublishError as e:
        console.print_error(e.message)
        sys.exit(1)


def _run_publish(
    config_path: Optional[Path],
    root: Optional[Path],
    distribution_id: Optional[str],
    *,
    dry_run: bool,
    verbose: bool,
    show_plan: bool,
) -> None:
    console = create_console(verbose=verbose)
    config = _load_or_exit(console, config_path)

    verbose = verbose or config.output.verbose
    console = create_console(verbose=verbose, colored=config.output.colored)
    logger = PublishLogger(console.rich, verbose=verbose)

    try:
        storage = create_storage(config.storage)
        cdn = create_cdn(config.cdn)
    except PublishError as e:
        console.print_error(e.message)
        sys.exit(1)

    logger.info(f"Publishing {root or config.site.root} -> {storage.resource_name}/{config.storage.prefix}")

    cancel_event = threading.Event()
    with ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(
            publish_from_config,
            config,
            storage,
            cdn,
            logger=logger,
            root_dir=root,
            distribution_id=distribution_id,
            dry_run=dry_run,
            cancel_event=cancel_event,
        )
        try:
            result: PublishResult = future.result()
        except KeyboardInterrupt:
            logger.warning("Cancelling; waiting for in-flight uploads to finish")
            cancel_event.set()
            result = future.result()

    if show_plan or verbose:
        console.print_plan(result.actions, result.prune_candidates)

    console.print_publish_result(result)

    if result.failed:
        sys.exit(1)


@cli.command()
@config_option
@click.option("--root", "-r", type=click.Path(exists=True, file_okay=False, path_type=Path), help="Override site root")
@click.option("--distribution-id", "-d", help="Override the CDN distribution allowed to read")
@click.option("--dry-run", "-n", is_flag=True, help="Preview changes without applying")
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
def publish(
    config_path: Optional[Path],
    root: Optional[Path],
    distribution_id: Optional[str],
    dry_run: bool,
    verbose: bool,
) -> None:
    """Publish the site to storage and bind CDN read access.

    Uploads new and changed files, blocks public access on the bucket,
    installs a read-only policy for the distribution and invalidates
    the changed paths.

    \b
    Examples:
      sitepub publish
      sitepub publish --dry-run
      sitepub publish -r ./dist -d E123ABC
    """
    _run_publish(config_path, root, distribution_id, dry_run=dry_run, verbose=verbose, show_plan=dry_run)


@cli.command()
@config_option
@click.option("--root", "-r", type=click.Path(exists=True, file_okay=False, path_type=Path), help="Override site root")
@click.option("--distribution-id", "-d", help="Override the CDN distribution allowed to read")
@click.option("--verbose", "-v", is_flag=True, help="Also list unchanged objects")
def plan(config_path: Optional[Path], root: Optional[Path], distribution_id: Optional[str], verbose: bool) -> None:
    """Show what a publish would upload, without changing anything."""
    _run_publish(config_path, root, distribution_id, dry_run=True, verbose=verbose, show_plan=True)


@cli.command()
@config_option
@click.option("--distribution-id", "-d", help="Override the CDN distribution allowed to read")
def policy(config_path: Optional[Path], distribution_id: Optional[str]) -> None:
    """Print the access policy that publish installs on the bucket."""
    console = create_console()
    config = _load_or_exit(console, config_path)

    try:
        storage = create_storage(config.storage)
        distribution_id = distribution_id or config.cdn.distribution_id
        if not distribution_id:
            cdn = create_cdn(config.cdn)
            if cdn is not None:
                distribution_id = cdn.get_distribution_identifier()

        binder = AccessBinder(storage)
        grant = binder.build_grant(config.storage, distribution_id or "")
    except PublishError as e:
        console.print_error(e.message)
        sys.exit(1)

    console.print_policy(binder.policy_document(grant))


@cli.command()
@config_option
@click.option("--root", "-r", type=click.Path(exists=True, file_okay=False, path_type=Path), help="Override site root")
def routes(config_path: Optional[Path], root: Optional[Path]) -> None:
    """Validate the error routes against the site and list them."""
    console = create_console()
    config = _load_or_exit(console, config_path)

    site_root = root or Path(config.site.root)
    try:
        paths = scan_paths(site_root, ignore=ignore_patterns(config.scan.exclude))
        table = ErrorRoutingTable(routes_from_config(config.error_routes), paths)
    except PublishError as e:
        console.print_error(e.message)
        sys.exit(1)

    if not len(table):
        console.print("[dim]No error routes configured[/dim]")
        return

    console.print_routes(table)


@cli.group()
def config() -> None:
    """Configuration file commands."""
    pass


@config.command("init")
@config_option
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing configuration")
def config_init(config_path: Optional[Path], force: bool) -> None:
    """Create a configuration template."""
    console = create_console()
    path, created = ensure_config_exists(config_path, force=force)

    if created:
        console.print_success(f"Created configuration: {path}")
        console.print("[dim]Set storage.bucket, storage.account_id and the cdn section before publishing.[/dim]")
    else:
        console.print_warning(f"Configuration already exists: {path} (use --force to overwrite)")


@config.command("show")
@config_option
def config_show(config_path: Optional[Path]) -> None:
    """Show the effective configuration, defaults included."""
    console = create_console()
    config = _load_or_exit(console, config_path)

    distribution = config.cdn.distribution_id or config.cdn.alias or "-"
    console.print_config_summary(str(config_path or get_config_path()), config.storage.bucket, distribution)
    console.print(
        yaml.dump(config.model_dump(exclude_none=True, mode="json"), default_flow_style=False, sort_keys=False),
        markup=False,
    )


@config.command("validate")
@config_option
def config_validate(config_path: Optional[Path]) -> None:
    """Validate a configuration file."""
    console = create_console()
    path = config_path or get_config_path()
    valid, messages = validate_config_file(path)

    if valid:
        console.print_success(f"Configuration is valid: {path}")
        for message in messages:
            console.print_warning(message)
        return

    console.print_error(f"Configuration is invalid: {path}")
    for message in messages:
        console.print(f"  [red]•[/red] {message}")
    sys.exit(1)


if __name__ == "__main__":
    cli()
