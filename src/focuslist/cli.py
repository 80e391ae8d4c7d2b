"""focuslist CLI - urgency-ranked personal task list."""

import asyncio
import json
import logging
import sys
from datetime import datetime

import click
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .adapters.local_session import LocalSession
from .config import Config, build_clock, build_store, load_config
from .core.tasks import FocusMode, Priority, TaskDraft
from .errors import FocusListError, NotAuthenticatedError, TaskNotFoundError
from .render import format_stats, format_view, stats_to_json, task_to_json
from .sync import SyncState, TaskSync

logger = logging.getLogger(__name__)

FOCUS_CHOICES = ["all", "today", "high"]
PRIORITY_CHOICES = ["low", "medium", "high"]
DUE_FORMATS = ["%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M"]


def _run(config: Config, work, require_live: bool = True):
    """
    Open a session for the configured user, wait for the first snapshot,
    run work(sync), then end the session.

    Any FocusListError is reported on stderr with exit status 1.
    """

    async def _session():
        if not config.user_id:
            raise NotAuthenticatedError("No user configured. Set USER_ID in focuslist.conf or pass --user.")
        sync = TaskSync(build_store(config), build_clock(config))
        session = LocalSession()
        sync.follow(session)
        session.sign_in(config.user_id)
        try:
            state = await sync.wait_until_synced()
            if require_live and state is SyncState.ERROR:
                raise sync.error
            return await work(sync)
        finally:
            session.sign_out()
            await sync.aclose()

    try:
        return asyncio.run(_session())
    except FocusListError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _resolve_task_id(sync: TaskSync, ref: str) -> str:
    """Accept a full task id or a unique prefix of one."""
    ids = [t.id for t in sync.tasks]
    if ref in ids:
        return ref
    matches = [i for i in ids if i.startswith(ref)]
    if len(matches) != 1:
        raise TaskNotFoundError(ref)
    return matches[0]


def _focus(value: str | None, config: Config) -> FocusMode:
    return FocusMode.parse(value or config.default_focus or "all")


@click.group()
@click.version_option(package_name="focuslist")
@click.option("--user", "user_id", help="User id (overrides USER_ID in config)")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
@click.pass_context
def main(ctx, user_id: str | None, verbose: bool):
    """focuslist - tasks ranked by urgency."""
    config = load_config()
    level = logging.DEBUG if verbose else getattr(logging, config.log_level, logging.WARNING)
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=level,
    )
    if user_id:
        config.user_id = user_id
    ctx.obj = config


@main.command("list")
@click.option("--focus", type=click.Choice(FOCUS_CHOICES, case_sensitive=False), help="Focus mode")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def list_tasks(config: Config, focus: str | None, as_json: bool):
    """List tasks, most urgent first."""

    async def work(sync: TaskSync):
        sync.set_focus_mode(_focus(focus, config))
        return sync.view()

    view = _run(config, work)

    if as_json:
        click.echo(
            json.dumps(
                {
                    "focus": view.focus_mode.value,
                    "tasks": [task_to_json(t, view.as_of) for t in view.tasks],
                    "stats": stats_to_json(view.stats),
                },
                indent=2,
            )
        )
    else:
        click.echo(format_view(view, color=True))


@main.command()
@click.argument("title")
@click.option("--due", required=True, type=click.DateTime(formats=DUE_FORMATS), help="Deadline, YYYY-MM-DD HH:MM")
@click.option(
    "--priority",
    type=click.Choice(PRIORITY_CHOICES, case_sensitive=False),
    default="medium",
    show_default=True,
)
@click.option("--description", default="", help="Optional details")
@click.pass_obj
def add(config: Config, title: str, due: datetime, priority: str, description: str):
    """Add a task."""

    async def work(sync: TaskSync):
        # Deadline is read in the clock's timezone
        draft = TaskDraft(
            title=title,
            description=description,
            deadline=due.replace(tzinfo=sync.clock.now().tzinfo),
            priority=Priority.parse(priority),
        )
        return await sync.add_task(draft)

    task = _run(config, work)
    click.echo(f"Added {task.title} ({task.id})")


@main.command()
@click.argument("task_id")
@click.pass_obj
def done(config: Config, task_id: str):
    """Toggle a task's completion."""

    async def work(sync: TaskSync):
        return await sync.toggle_complete(_resolve_task_id(sync, task_id))

    task = _run(config, work)
    state = "completed" if task.is_completed else "reopened"
    click.echo(f"Task {state}: {task.title}")


@main.command()
@click.argument("task_id")
@click.option("--yes", is_flag=True, help="Don't ask for confirmation")
@click.pass_obj
def rm(config: Config, task_id: str, yes: bool):
    """Delete a task permanently."""

    async def work(sync: TaskSync):
        resolved = _resolve_task_id(sync, task_id)
        task = next(t for t in sync.tasks if t.id == resolved)
        if not yes and not click.confirm(f"Delete '{task.title}'? This cannot be undone."):
            return None
        await sync.remove_task(resolved)
        return task

    task = _run(config, work)
    if task is not None:
        click.echo(f"Deleted {task.title}")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def stats(config: Config, as_json: bool):
    """Show productivity stats."""

    async def work(sync: TaskSync):
        return sync.stats()

    result = _run(config, work)
    if as_json:
        click.echo(json.dumps(stats_to_json(result), indent=2))
    else:
        click.echo(format_stats(result))


def build_refresh_scheduler(refresh, seconds: float, timezone: str = "UTC") -> AsyncIOScheduler:
    """
    Scheduler that calls refresh() every `seconds` on the running event loop.

    The job is a coroutine so AsyncIOExecutor runs it on the loop rather than
    in a worker thread.
    """

    async def refresh_labels():
        refresh()

    scheduler = AsyncIOScheduler(timezone=timezone)
    scheduler.add_job(refresh_labels, IntervalTrigger(seconds=seconds), id="refresh_labels")
    return scheduler


@main.command()
@click.option("--focus", type=click.Choice(FOCUS_CHOICES, case_sensitive=False), help="Focus mode")
@click.pass_obj
def watch(config: Config, focus: str | None):
    """Live view, updated on every change and re-ticked periodically."""

    async def work(sync: TaskSync):
        def render(_sync: TaskSync | None = None) -> None:
            view = sync.view()
            click.clear()
            click.echo(format_view(view, color=True))
            if view.error is not None:
                click.echo(f"\nError: {view.error}", err=True)

        sync.set_focus_mode(_focus(focus, config))
        remove = sync.add_listener(render)
        scheduler = build_refresh_scheduler(render, max(1, config.refresh_seconds), config.timezone or "UTC")
        scheduler.start()
        logger.info(f"Refreshing labels every {config.refresh_seconds}s")
        render()
        try:
            await asyncio.Event().wait()
        finally:
            remove()
            scheduler.shutdown(wait=False)

    try:
        _run(config, work, require_live=False)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
