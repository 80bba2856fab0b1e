"""ALF Coach CLI — alf command."""

from __future__ import annotations

import json
from typing import Any

import click

from alf_coach.cli.client import CoachClient

STAGE_CHOICES = ["Ideation", "Curriculum", "Assignments"]


def _format_table(rows: list[dict], columns: list[str]) -> str:
    """Simple table formatter."""
    if not rows:
        return "No results."
    widths = {c: len(c) for c in columns}
    for row in rows:
        for c in columns:
            widths[c] = max(widths[c], len(str(row.get(c) or "")))

    header = "  ".join(c.upper().ljust(widths[c]) for c in columns)
    separator = "  ".join("-" * widths[c] for c in columns)
    lines = [header, separator]
    for row in rows:
        lines.append("  ".join(str(row.get(c) or "").ljust(widths[c]) for c in columns))
    return "\n".join(lines)


@click.group()
@click.option("--api", default="http://localhost:8400", envvar="ALF_API", help="API base URL")
@click.option("--format", "output_format", type=click.Choice(["table", "json"]), default="table")
@click.option("--token", default=None, envvar="ALF_TOKEN", help="Auth token")
@click.pass_context
def cli(ctx: click.Context, api: str, output_format: str, token: str | None) -> None:
    """ALF Coach CLI — plan projects stage by stage from the terminal."""
    ctx.obj = CoachClient(base_url=api, auth_token=token)
    ctx.meta["output_format"] = output_format


def _output(ctx: click.Context, data: Any, columns: list[str] | None = None) -> None:
    fmt = ctx.meta.get("output_format", "table")
    if fmt == "table" and isinstance(data, list) and columns:
        click.echo(_format_table(data, columns))
    else:
        click.echo(json.dumps(data, indent=2, default=str))


def _print_turn(ctx: click.Context, data: dict) -> None:
    if ctx.meta.get("output_format") == "json":
        _output(ctx, data)
        return
    reply = data.get("reply", {})
    click.echo(reply.get("chatResponse", ""))
    for i, suggestion in enumerate(reply.get("suggestions") or [], start=1):
        click.echo(f"  [{i}] {suggestion}")
    if not data.get("valid", True):
        for error in data.get("errors", []):
            click.echo(f"  ! {error}", err=True)
    if data.get("canAdvance"):
        click.echo(f"\n{data.get('stage')} is complete. Run `alf advance <project-id>` to move on.")


# --- Project commands ---


@cli.group()
def project() -> None:
    """Manage projects."""


@project.command("list")
@click.option("--stage", type=click.Choice(STAGE_CHOICES + ["Completed"]), default=None)
@click.pass_context
def project_list(ctx: click.Context, stage: str | None) -> None:
    """List projects, newest first."""
    client: CoachClient = ctx.obj
    params = {"stage": stage} if stage else {}
    data = client.list_projects(**params)
    _output(ctx, data, ["id", "title", "stage", "subject", "ageGroup"])


@project.command("create")
@click.option("--title", required=True)
@click.option("--perspective", required=True, help="Your vision or initial ideas")
@click.option("--subject", default=None)
@click.option("--age-group", default=None, help='e.g. "Ages 11-14" or "7th graders"')
@click.option("--scope", default=None, help="Single Lesson, Multi-week Unit, Full Course/Studio")
@click.option("--studio", default=None, help="Studio theme, e.g. Maker Studio")
@click.option("--location", default=None)
@click.pass_context
def project_create(
    ctx: click.Context,
    title: str,
    perspective: str,
    subject: str | None,
    age_group: str | None,
    scope: str | None,
    studio: str | None,
    location: str | None,
) -> None:
    """Create a project (the onboarding wizard)."""
    client: CoachClient = ctx.obj
    data: dict[str, Any] = {"title": title, "educatorPerspective": perspective}
    optional = {
        "subject": subject,
        "ageGroup": age_group,
        "projectScope": scope,
        "studioTheme": studio,
        "location": location,
    }
    data.update({k: v for k, v in optional.items() if v})
    result = client.create_project(data)
    _output(ctx, result)


@project.command("show")
@click.argument("project_id")
@click.pass_context
def project_show(ctx: click.Context, project_id: str) -> None:
    """Show a project document."""
    client: CoachClient = ctx.obj
    _output(ctx, client.get_project(project_id))


# --- Chat ---


@cli.command()
@click.argument("project_id")
@click.argument("message")
@click.pass_context
def chat(ctx: click.Context, project_id: str, message: str) -> None:
    """Send one message in the project's current stage."""
    client: CoachClient = ctx.obj
    _print_turn(ctx, client.send_message(project_id, message))


@cli.command()
@click.argument("project_id")
@click.pass_context
def finalize(ctx: click.Context, project_id: str) -> None:
    """Summarize the Ideation chat and mark it complete."""
    client: CoachClient = ctx.obj
    _print_turn(ctx, client.finalize_ideation(project_id))


# --- Stages ---


@cli.command()
@click.argument("project_id")
@click.option("--finalize", "finalize_stage", is_flag=True, help="Close Assignments explicitly")
@click.pass_context
def advance(ctx: click.Context, project_id: str, finalize_stage: bool) -> None:
    """Move the project to its next stage."""
    client: CoachClient = ctx.obj
    result = client.advance(project_id, finalize=finalize_stage)
    click.echo(f"Project '{project_id}' is now in {result.get('stage')}")


@cli.command()
@click.argument("project_id")
@click.argument("stage", type=click.Choice(STAGE_CHOICES))
@click.pass_context
def revise(ctx: click.Context, project_id: str, stage: str) -> None:
    """Go back to an earlier stage."""
    client: CoachClient = ctx.obj
    result = client.revise(project_id, stage)
    click.echo(f"Project '{project_id}' is back in {result.get('stage')}")


# --- Prompt preview ---


@cli.command()
@click.argument("project_id")
@click.option("--stage", type=click.Choice(STAGE_CHOICES), default=None)
@click.option("--summary", is_flag=True, help="Show the Ideation summary prompt")
@click.pass_context
def prompt(ctx: click.Context, project_id: str, stage: str | None, summary: bool) -> None:
    """Print the system prompt the next turn would send."""
    client: CoachClient = ctx.obj
    result = client.preview_prompt(project_id, stage=stage, summary=summary)
    if ctx.meta.get("output_format") == "json":
        _output(ctx, result)
        return
    click.echo(result.get("prompt", ""))
    if result.get("warnings"):
        click.echo("\nWarnings:", err=True)
        for w in result["warnings"]:
            click.echo(f"  - {w}", err=True)


if __name__ == "__main__":
    cli()
