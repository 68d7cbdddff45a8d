"""CLI for the stamper registry."""

import sys
from pathlib import Path
from typing import NoReturn, Optional

import click
import httpx
import yaml
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import RegistrySettings, load_settings
from .logging_config import setup_logging
from .registry.client import RegistryClient


console = Console()


def _make_client(registry: Optional[str]) -> RegistryClient:
    url = registry or load_settings().registry_url
    return RegistryClient(url)


def _report_http_error(e: httpx.HTTPError) -> NoReturn:
    message = str(e)
    if isinstance(e, httpx.HTTPStatusError):
        try:
            message = e.response.json().get("error") or message
        except ValueError:
            pass
    console.print(f"[red]Error: {escape(message)}[/red]")
    sys.exit(1)


def _read_content(content: Optional[str], file: Optional[str]) -> Optional[str]:
    if file:
        return Path(file).read_text()
    return content


@click.group()
@click.version_option(version=__version__, prog_name="stamper")
@click.option("--env-file", type=click.Path(dir_okay=False), default=".env", help="dotenv file to load")
def cli(env_file: str):
    """Stamper – minimal package registry."""
    load_dotenv(env_file, override=False)


@cli.command()
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", default=None, type=int, help="Port to bind to")
@click.option("--storage", type=click.Choice(["memory", "file"]), default=None, help="Storage backend")
@click.option("--storage-path", default=None, help="Root directory of the file backend")
@click.option("--config", "config_path", type=click.Path(exists=True), default=None, help="YAML settings file")
@click.option("--reload", is_flag=True, help="Enable auto-reload")
def serve(
    host: Optional[str],
    port: Optional[int],
    storage: Optional[str],
    storage_path: Optional[str],
    config_path: Optional[str],
    reload: bool,
):
    """Start the registry server."""
    from .registry.server import serve as run_server

    try:
        settings = load_settings(config_path)
        settings = RegistrySettings.from_dict(
            {"host": host, "port": port, "storage": storage, "storage_path": storage_path},
            base=settings,
        )
    except (ValueError, FileNotFoundError, yaml.YAMLError) as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    setup_logging(settings.log_level)
    run_server(settings, reload=reload)


@cli.command()
@click.argument("owner")
@click.argument("name")
@click.option("--version", "-v", "version", default=None, help="Version (default 0.1.0)")
@click.option("--content", "-c", default=None, help="Inline content")
@click.option("--file", "-f", type=click.Path(exists=True, dir_okay=False), default=None, help="Read content from file")
@click.option("--registry", "-r", default=None, help="Registry URL")
def publish(owner: str, name: str, version: Optional[str], content: Optional[str], file: Optional[str], registry: Optional[str]):
    """Publish a package version (updates it if it already exists)."""
    try:
        with _make_client(registry) as client:
            result = client.publish(owner, name, version, _read_content(content, file))
    except httpx.HTTPError as e:
        _report_http_error(e)

    if result.get("success") is False:
        console.print(f"[red]✗ Failed to publish {owner}/{name}: {result.get('error')}[/red]")
        sys.exit(1)
    console.print(f"[green]✓ {result['message']}: {result['owner']}/{result['name']}@{result['version']}[/green]")
    console.print(f"  sha256 {result['hash']}")


@cli.command()
@click.argument("owner")
@click.argument("name")
@click.option("--version", "-v", "version", default=None, help="Version (default 0.1.0)")
@click.option("--content", "-c", default=None, help="Inline content")
@click.option("--file", "-f", type=click.Path(exists=True, dir_okay=False), default=None, help="Read content from file")
@click.option("--registry", "-r", default=None, help="Registry URL")
def update(owner: str, name: str, version: Optional[str], content: Optional[str], file: Optional[str], registry: Optional[str]):
    """Overwrite an existing package version."""
    body = _read_content(content, file)
    if not body:
        console.print("[red]Error: --content or --file is required[/red]")
        sys.exit(1)

    try:
        with _make_client(registry) as client:
            result = client.update(owner, name, version, body)
    except httpx.HTTPError as e:
        _report_http_error(e)

    if result.get("success") is False:
        console.print(f"[red]✗ Failed to update {owner}/{name}: {result.get('error')}[/red]")
        sys.exit(1)
    console.print(f"[green]✓ {result['message']}: {result['owner']}/{result['name']}@{result['version']}[/green]")
    console.print(f"  sha256 {result['hash']}")


@cli.command()
@click.argument("owner")
@click.argument("name")
@click.option("--version", "-v", "version", default=None, help="Version (default 0.1.0)")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Write content to file")
@click.option("--registry", "-r", default=None, help="Registry URL")
def get(owner: str, name: str, version: Optional[str], output: Optional[str], registry: Optional[str]):
    """Fetch the content of a package version."""
    try:
        with _make_client(registry) as client:
            content = client.pull(owner, name, version, Path(output) if output else None)
    except httpx.HTTPError as e:
        _report_http_error(e)

    if content is None:
        console.print(f"[yellow]⚠ {owner}/{name}@{version or '0.1.0'} not found in registry[/yellow]")
        sys.exit(1)
    if output:
        console.print(f"[green]✓ Saved to {output}[/green]")
    else:
        click.echo(content)


@cli.command()
@click.argument("query")
@click.option("--limit", "-n", default=None, type=int, help="Maximum results (default 10)")
@click.option("--registry", "-r", default=None, help="Registry URL")
def search(query: str, limit: Optional[int], registry: Optional[str]):
    """Search package keys by substring."""
    try:
        with _make_client(registry) as client:
            result = client.search(query, limit)
    except httpx.HTTPError as e:
        _report_http_error(e)

    if not result["count"]:
        console.print(f"[dim]No packages match '{result['query']}'[/dim]")
        return

    table = Table(title=f"{result['count']} match(es) for '{result['query']}'")
    table.add_column("Package", style="cyan")
    table.add_column("Content")
    for hit in result["results"]:
        preview = hit["value"] if len(hit["value"]) <= 60 else hit["value"][:57] + "..."
        table.add_row(hit["name"], preview)
    console.print(table)


def main(argv=None):
    """Main entry point."""
    cli(argv)


if __name__ == "__main__":
    main()
