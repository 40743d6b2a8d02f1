"""lexicard CLI — root commands and the sync/config subgroups."""

import asyncio
import dataclasses
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, Any, Literal, TypeVar

import typer

from lexicard.application.config import AppConfig, resolve_config
from lexicard.application.factory import AppContext, build_context
from lexicard.consts import VERSION
from lexicard.domain.clock import iso_str
from lexicard.domain.constants import (
    DEFAULT_BRANCH,
    DEFAULT_DAILY_GOAL,
    SETTING_DAILY_GOAL,
    SETTING_PACE,
)
from lexicard.domain.errors import LexicardError
from lexicard.domain.models import Word

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="lexicard: spaced-repetition vocabulary trainer with GitHub sync.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

sync_app = typer.Typer(help="Synchronize the dataset with a GitHub repository.", no_args_is_help=True)
app.add_typer(sync_app, name="sync")

config_app = typer.Typer(help="Manage lexicard configuration.", no_args_is_help=True)
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

LOG_LEVELS = {0: logging.WARNING, 1: logging.WARNING, 2: logging.INFO}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _resolve_with_overrides(**overrides: Any) -> AppConfig:
    return resolve_config({k: v for k, v in overrides.items() if v is not None})


def _run(ctx: typer.Context, action: Callable[[AppContext], Awaitable[T]]) -> T:
    """Build the application context, run ``action`` on it, and report domain errors."""
    obj = ctx.find_root().obj or {}
    config = _resolve_with_overrides(db_path=obj.get("db_path"), verbose=obj.get("verbose"))
    logging.getLogger("lexicard").setLevel(LOG_LEVELS.get(config.verbose, logging.DEBUG))

    async def runner() -> T:
        app_ctx = build_context(config)
        try:
            return await action(app_ctx)
        finally:
            await app_ctx.close()

    try:
        return asyncio.run(runner())
    except LexicardError as e:
        logger.debug(f"Command failed: {e!r}")
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(1) from None


def _to_json(value: Any) -> str:
    if dataclasses.is_dataclass(value):
        value = dataclasses.asdict(value)
    elif isinstance(value, list):
        value = [dataclasses.asdict(v) if dataclasses.is_dataclass(v) else v for v in value]
    return json.dumps(value, indent=2, ensure_ascii=False)


def _format_word(word: Word) -> str:
    line = f"[{word.id}] {word.english_term} — {word.translated_term}"
    if word.unit:
        line += f"  (unit {word.unit})"
    return line


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    db: Annotated[
        Path | None, typer.Option("--db", help="Path to the SQLite database file.")
    ] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 1,
):
    """Global settings for lexicard."""
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db
    ctx.obj["verbose"] = verbose


# ---------------------------------------------------------------------------
# Word commands
# ---------------------------------------------------------------------------


@app.command()
def add(
    ctx: typer.Context,
    english: Annotated[str, typer.Argument(help="The word to learn.")],
    translation: Annotated[str, typer.Argument(help="Its translation.")],
    example: Annotated[str, typer.Option("--example", "-e", help="Example sentence.")] = "",
    unit: Annotated[int, typer.Option("--unit", "-u", help="Unit number for grouping.")] = 0,
):
    """[bold green]Add[/bold green] a word; it is due for review immediately."""
    word_id = _run(ctx, lambda c: c.words.add_word(english, translation, example, unit))
    typer.secho(f"Added '{english.strip()}' (id {word_id}).", fg="green")


@app.command()
def edit(
    ctx: typer.Context,
    word_id: Annotated[int, typer.Argument(help="Id of the word to edit.")],
    english: Annotated[str, typer.Argument(help="New word text.")],
    translation: Annotated[str, typer.Argument(help="New translation.")],
    example: Annotated[str, typer.Option("--example", "-e", help="Example sentence.")] = "",
    unit: Annotated[int, typer.Option("--unit", "-u", help="Unit number.")] = 0,
):
    """Edit a word's text without touching its review history."""
    word = _run(
        ctx, lambda c: c.words.update_word(word_id, english, translation, example, unit)
    )
    typer.echo(f"Updated {_format_word(word)}")


@app.command()
def delete(
    ctx: typer.Context,
    word_id: Annotated[int, typer.Argument(help="Id of the word to delete.")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation.")] = False,
):
    """Delete a word."""
    if not yes:
        typer.confirm(f"Delete word {word_id}?", abort=True)
    _run(ctx, lambda c: c.words.delete_word(word_id))
    typer.echo(f"Deleted word {word_id}.")


@app.command("list")
def list_words(
    ctx: typer.Context,
    query: Annotated[str, typer.Argument(help="Search text.")] = "",
    unit: Annotated[int | None, typer.Option(help="Only words in this unit.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List words, optionally filtered by search text or unit."""

    async def action(c: AppContext) -> list[Word]:
        if unit is not None:
            words = await c.words.get_words_by_unit(unit)
            if query:
                needle = query.lower()
                words = [
                    w
                    for w in words
                    if needle in w.english_term.lower() or query in w.translated_term
                ]
            return words
        return await c.words.get_all_words(query)

    words = _run(ctx, action)
    if json_output:
        typer.echo(_to_json(words))
        return
    if not words:
        typer.secho("No words found.", fg="yellow")
        return
    for word in words:
        typer.echo(_format_word(word))


@app.command()
def today(
    ctx: typer.Context,
    limit: Annotated[
        int | None, typer.Option(help="Maximum words. Defaults to the daily goal.")
    ] = None,
):
    """Show the words selected for today's session, in priority order."""

    async def action(c: AppContext) -> list[Word]:
        goal = limit or await c.store.get_setting(SETTING_DAILY_GOAL, DEFAULT_DAILY_GOAL)
        return await c.scheduler.get_today_words(goal)

    words = _run(ctx, action)
    if not words:
        typer.secho("Nothing to review today.", fg="green")
        return
    typer.echo(f"{len(words)} words for today:")
    for word in words:
        typer.echo(f"  {_format_word(word)}")


@app.command()
def review(ctx: typer.Context):
    """[bold]Review[/bold] today's words interactively."""

    async def action(c: AppContext) -> None:
        session = c.new_session()
        words = await session.load_today_words()
        if not words:
            typer.secho("Nothing to review today.", fg="green")
            return

        while (word := session.current_word()) is not None:
            typer.secho(
                f"\n({session.index + 1}/{len(words)}) {word.english_term}", bold=True
            )
            typer.prompt("Press Enter to reveal", default="", show_default=False)
            typer.echo(f"  {word.translated_term}")
            if word.example:
                typer.echo(f"  e.g. {word.example}")
            known = typer.confirm("Did you know it?", default=True)
            result = await session.mark_word(known)
            typer.echo(f"  next review in {result.word_result.days_until_review} day(s)")

        stats = session.stats
        typer.secho(
            f"\nSession complete: {stats.reviewed} reviewed, {stats.correct} correct "
            f"({stats.accuracy}%).",
            fg="green",
        )

    _run(ctx, action)


@app.command()
def stats(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show learning progress."""

    async def action(c: AppContext):
        return await c.progress.get_progress(), await c.progress.check_achievements()

    progress, achievements = _run(ctx, action)
    if json_output:
        data = dataclasses.asdict(progress)
        data["achievements"] = [dataclasses.asdict(a) for a in achievements]
        typer.echo(json.dumps(data, indent=2, ensure_ascii=False))
        return

    typer.echo(
        f"Words: {progress.total_words}  New: {progress.new_words}  "
        f"Learning: {progress.learning_words}  Mastered: {progress.mastered_words}"
    )
    typer.echo(
        f"Today: {progress.today_reviewed} reviewed, {progress.today_correct} correct"
    )
    typer.echo(f"Accuracy: {progress.accuracy}%  Streak: {progress.streak} day(s)")
    if progress.overdue_words:
        typer.secho(f"Overdue: {progress.overdue_words}", fg="yellow")
    for achievement in achievements:
        typer.secho(f"* {achievement.name}: {achievement.description}", fg="cyan")


@app.command()
def schedule(
    ctx: typer.Context,
    days: Annotated[int, typer.Option(help="Number of days to show.")] = 7,
):
    """Show how many reviews fall on each of the coming days."""

    async def action(c: AppContext):
        return await c.scheduler.get_upcoming_schedule(days), await c.scheduler.optimize_schedule()

    upcoming, advice = _run(ctx, action)
    for day in upcoming:
        typer.echo(f"{day.date}  {day.count:>4}")
    if advice.needs_optimization:
        typer.secho(advice.message, fg="yellow")


@app.command("import")
def import_cmd(
    ctx: typer.Context,
    path: Annotated[
        Path, typer.Argument(exists=True, dir_okay=False, help="JSON file with a list of words.")
    ],
):
    """Import words from a JSON file, skipping duplicates."""
    text = path.read_text(encoding="utf-8")
    result = _run(ctx, lambda c: c.words.import_words(text))
    typer.secho(
        f"Imported {result.imported} of {result.total} words ({result.skipped} skipped).",
        fg="green",
    )
    for error in result.errors:
        typer.secho(f"  {error}", fg="yellow")


@app.command()
def export(
    ctx: typer.Context,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write to a file instead of stdout.")
    ] = None,
):
    """Export words as JSON."""
    text = _run(ctx, lambda c: c.words.export_words())
    if output:
        output.write_text(text, encoding="utf-8")
        typer.secho(f"Exported to {output}", fg="green")
    else:
        typer.echo(text)


@app.command()
def version():
    """Show the lexicard version."""
    typer.echo(f"lexicard {VERSION}")


# ---------------------------------------------------------------------------
# Sync subgroup
# ---------------------------------------------------------------------------


@sync_app.command("configure")
def sync_configure(
    ctx: typer.Context,
    token: Annotated[str, typer.Option(prompt=True, hide_input=True, help="GitHub token.")],
    owner: Annotated[str, typer.Option(prompt=True, help="Repository owner.")],
    repo: Annotated[str, typer.Option(prompt=True, help="Repository name.")],
    branch: Annotated[str, typer.Option(help="Branch holding the data file.")] = DEFAULT_BRANCH,
):
    """Save GitHub credentials in the local database."""
    _run(ctx, lambda c: c.sync.save_config(token, owner, repo, branch))
    typer.secho(f"Sync configured for {owner}/{repo}@{branch}.", fg="green")


@sync_app.command("test")
def sync_test(ctx: typer.Context):
    """Check that the repository is reachable with the saved credentials."""
    info = _run(ctx, lambda c: c.sync.test_connection())
    visibility = "private" if info.is_private else "public"
    typer.secho(f"Connected to {info.name} ({visibility}).", fg="green")


@sync_app.command("status")
def sync_status(ctx: typer.Context):
    """Show sync configuration and the last sync."""
    status = _run(ctx, lambda c: c.sync.get_sync_status())
    if not status.configured:
        typer.secho(status.message or "Not configured.", fg="yellow")
        return
    last = iso_str(status.last_sync_time) if status.last_sync_time else "never"
    typer.echo(f"Last sync: {last}")
    if status.last_sync_sha:
        typer.echo(f"Revision: {status.last_sync_sha}")


@sync_app.command("upload")
def sync_upload(ctx: typer.Context):
    """Push local data to GitHub."""
    result = _run(ctx, lambda c: c.sync.upload())
    typer.secho(result.message, fg="green")


@sync_app.command("download")
def sync_download(
    ctx: typer.Context,
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Bypass confirmation for destructive actions.")
    ] = False,
):
    """Replace local data with the GitHub copy."""
    if not force:
        typer.confirm("This replaces all local words. Continue?", abort=True)
    result = _run(ctx, lambda c: c.sync.download())
    typer.secho(f"{result.message} ({result.words_imported} words).", fg="green")


@sync_app.command("smart")
def sync_smart(ctx: typer.Context):
    """Merge local and GitHub data, keeping the most learning progress."""
    result = _run(ctx, lambda c: c.sync.smart_sync())
    typer.secho(result.message, fg="green")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    if d.get("github_token"):
        d["github_token"] = "***"
    typer.echo(json.dumps(d, indent=2))


@config_app.command("pace")
def config_pace(
    ctx: typer.Context,
    pace: Annotated[Literal["standard", "fast", "slow"], typer.Argument(help="Review pace.")],
):
    """Choose how aggressively reviews are spaced."""
    _run(ctx, lambda c: c.store.set_setting(SETTING_PACE, pace))
    typer.echo(f"Review pace set to {pace}.")


@config_app.command("goal")
def config_goal(
    ctx: typer.Context,
    goal: Annotated[int, typer.Argument(min=1, help="Words per session.")],
):
    """Set the number of words per session."""
    _run(ctx, lambda c: c.store.set_setting(SETTING_DAILY_GOAL, goal))
    typer.echo(f"Daily goal set to {goal}.")
