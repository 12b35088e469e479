"""CopyForge CLI: copyforge command."""

from __future__ import annotations

import json
from typing import Any

import click

from copy_forge.cli.client import CopyForgeClient


def _format_table(rows: list[dict], columns: list[str]) -> str:
    """Simple table formatter."""
    if not rows:
        return "No results."
    widths = {c: len(c) for c in columns}
    for row in rows:
        for c in columns:
            widths[c] = max(widths[c], len(str(row.get(c, ""))))

    header = "  ".join(c.upper().ljust(widths[c]) for c in columns)
    separator = "  ".join("-" * widths[c] for c in columns)
    lines = [header, separator]
    for row in rows:
        lines.append("  ".join(str(row.get(c, "")).ljust(widths[c]) for c in columns))
    return "\n".join(lines)


@click.group()
@click.option("--api", default="http://localhost:8400", envvar="COPYFORGE_API", help="API base URL")
@click.option("--format", "output_format", type=click.Choice(["table", "json"]), default="table")
@click.option("--user", "user_id", default=None, envvar="COPYFORGE_USER", help="User id")
@click.pass_context
def cli(ctx: click.Context, api: str, output_format: str, user_id: str | None) -> None:
    """CopyForge CLI: projects, templates, scraping, and maintenance."""
    ctx.ensure_object(dict)
    ctx.obj = CopyForgeClient(base_url=api, user_id=user_id)
    ctx.meta["output_format"] = output_format


def _output(ctx: click.Context, data: Any, columns: list[str] | None = None) -> None:
    fmt = ctx.meta.get("output_format", "table")
    if fmt == "table" and isinstance(data, list) and columns:
        click.echo(_format_table(data, columns))
    else:
        click.echo(json.dumps(data, indent=2, default=str))


# --- Templates ---


@cli.group()
def templates() -> None:
    """Manage prompt templates."""


@templates.command("list")
@click.option("--platform", default=None)
@click.pass_context
def templates_list(ctx: click.Context, platform: str | None) -> None:
    """List your templates and the platform defaults."""
    client: CopyForgeClient = ctx.obj
    params = {"platform": platform} if platform else {}
    rows = client.list_templates(**params)
    for row in rows:
        row["platform"] = row.get("template", {}).get("platform", "")
    _output(ctx, rows, ["id", "name", "platform", "is_default", "updated_at"])


@templates.command("default")
@click.argument("platform", type=click.Choice(["facebook", "google", "tiktok"]))
@click.pass_context
def templates_default(ctx: click.Context, platform: str) -> None:
    """Show the default template for a platform."""
    client: CopyForgeClient = ctx.obj
    _output(ctx, client.get_default_template(platform))


@templates.command("delete")
@click.argument("template_id")
@click.pass_context
def templates_delete(ctx: click.Context, template_id: str) -> None:
    """Delete one of your templates."""
    client: CopyForgeClient = ctx.obj
    client.delete_template(template_id)
    click.echo(f"Deleted template '{template_id}'")


# --- Projects ---


@cli.group()
def projects() -> None:
    """Manage ad copy projects."""


@projects.command("list")
@click.pass_context
def projects_list(ctx: click.Context) -> None:
    client: CopyForgeClient = ctx.obj
    _output(ctx, client.list_projects(), ["id", "name", "platform", "status", "variation_count"])


@projects.command("show")
@click.argument("project_id")
@click.pass_context
def projects_show(ctx: click.Context, project_id: str) -> None:
    client: CopyForgeClient = ctx.obj
    _output(ctx, client.get_project(project_id))


@projects.command("create")
@click.option("--name", required=True)
@click.option("--platform", type=click.Choice(["facebook", "google", "tiktok"]), default="facebook")
@click.option("--url", "urls", multiple=True, help="Landing page URL (repeatable)")
@click.option("--variations", type=int, default=3)
@click.option("--system-prompt", default=None)
@click.pass_context
def projects_create(
    ctx: click.Context,
    name: str,
    platform: str,
    urls: tuple,
    variations: int,
    system_prompt: str | None,
) -> None:
    """Create a draft project."""
    client: CopyForgeClient = ctx.obj
    data: dict[str, Any] = {
        "name": name,
        "platform": platform,
        "landing_page_urls": list(urls),
        "variation_count": variations,
    }
    if system_prompt:
        data["system_prompt"] = system_prompt
    _output(ctx, client.create_project(data))


# --- Assets ---


@cli.group()
def assets() -> None:
    """Interpret project assets."""


@assets.command("process")
@click.argument("project_id")
@click.pass_context
def assets_process(ctx: click.Context, project_id: str) -> None:
    """Download and interpret every asset of a project."""
    client: CopyForgeClient = ctx.obj
    result = client.process_assets(project_id)
    if ctx.meta.get("output_format") == "json":
        _output(ctx, result)
        return
    _output(
        ctx,
        result["results"],
        ["remote_file_id", "file_type", "processing_method", "success", "from_cache", "failed_stage"],
    )
    click.echo(
        f"\n{result['succeeded']}/{result['total']} interpreted, {result['from_cache']} from cache"
    )


# --- Generate ---


@cli.command()
@click.argument("project_id")
@click.pass_context
def generate(ctx: click.Context, project_id: str) -> None:
    """Generate ad copy variations for a project."""
    client: CopyForgeClient = ctx.obj
    result = client.generate(project_id)
    if ctx.meta.get("output_format") == "json":
        _output(ctx, result)
        return
    for gen in result.get("generations", []):
        click.echo(f"--- Variation {gen['variation_number']} ({gen['variation_type']}) ---")
        for key, value in gen.get("content", {}).items():
            if key == "platform":
                continue
            click.echo(f"{key}: {value}")
        click.echo("")
    click.echo(f"Status: {result['status']} in {result['processing_time_ms']} ms")


# --- Scrape ---


@cli.command()
@click.argument("urls", nargs=-1, required=True)
@click.option("--no-cache", is_flag=True, help="Force a fresh scrape")
@click.pass_context
def scrape(ctx: click.Context, urls: tuple, no_cache: bool) -> None:
    """Scrape landing pages."""
    client: CopyForgeClient = ctx.obj
    result = client.scrape(list(urls), use_cache=not no_cache)
    if ctx.meta.get("output_format") == "json":
        _output(ctx, result)
        return
    _output(ctx, result["results"], ["url", "title", "success", "processing_time_ms", "error"])


# --- Dropbox ---


@cli.group()
def dropbox() -> None:
    """Browse the connected Dropbox account."""


@dropbox.command("files")
@click.option("--path", default="")
@click.option("--no-recursive", is_flag=True)
@click.pass_context
def dropbox_files(ctx: click.Context, path: str, no_recursive: bool) -> None:
    """List supported media files."""
    client: CopyForgeClient = ctx.obj
    rows = client.dropbox_files(path=path, recursive=not no_recursive)
    _output(ctx, rows, ["id", "path", "file_type", "size"])


# --- Maintenance ---


@cli.command()
@click.pass_context
def cleanup(ctx: click.Context) -> None:
    """Remove orphaned temp files and bucket objects now."""
    client: CopyForgeClient = ctx.obj
    _output(ctx, client.cleanup())


@cli.command("cache-stats")
@click.pass_context
def cache_stats(ctx: click.Context) -> None:
    """Show interpretation cache statistics."""
    client: CopyForgeClient = ctx.obj
    _output(ctx, client.cache_stats())


if __name__ == "__main__":
    cli()
