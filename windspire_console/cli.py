# windspire_console/cli.py
"""
CLI interface for windspire-console.

Thin presentation layer over the generation and duplicates packages.
Commands never add semantics of their own; they wire config, stores and
clients together and print what the core returns.
"""

import asyncio

import typer

from windspire_console.config.loader import get_db_path, load_config
from windspire_console.config.schema import WindspireConfig
from windspire_console.duplicates import (
    DuplicateResolver,
    ResolutionAction,
    SimilarityScorer,
    find_duplicates,
    mark_duplicates_in_store,
)
from windspire_console.errors import ConsoleError, PreconditionError
from windspire_console.generation import GenerationOrchestrator, InProgressMarker
from windspire_console.logging_config import configure_logging
from windspire_console.models.content import Difficulty
from windspire_console.models.content_set import ContentSet
from windspire_console.models.jobs import Progress
from windspire_console.models.sqlite_store import SQLiteFlagStore, SQLiteJobLog
from windspire_console.models.store import ContentStore, FlagStore, JobLog
from windspire_console.service import (
    ApiClient,
    BackoffPolicy,
    GenerationServiceClient,
    HttpContentStore,
)

app = typer.Typer(
    name="windspire-console",
    help="Batch content generation and duplicate cleanup for the Windspire catalog.",
    no_args_is_help=True,
)


def _run(coro):
    """Run async function from sync CLI context."""
    return asyncio.run(coro)


def _get_config() -> WindspireConfig:
    config = load_config()
    configure_logging(config.output.verbosity)
    return config


def _get_api(config: WindspireConfig) -> ApiClient:
    return ApiClient(
        config.service.base_url,
        api_token=config.service.api_token,
        timeout=config.service.timeout,
    )


async def _get_state(config: WindspireConfig) -> tuple[FlagStore, JobLog]:
    """Open the local marker and job history stores."""
    path = get_db_path(config)
    path.parent.mkdir(parents=True, exist_ok=True)
    db_path = str(path)
    flags = SQLiteFlagStore(db_path)
    await flags.initialize()
    job_log = SQLiteJobLog(db_path)
    await job_log.initialize()
    return flags, job_log


async def _load_content(store: ContentStore, status: str | None) -> ContentSet:
    items = await store.list(status=status)
    return ContentSet(items)


def _state_color(state: str) -> str:
    """Return ANSI color for job state."""
    colors = {
        "complete": typer.colors.GREEN,
        "running": typer.colors.YELLOW,
        "interrupted": typer.colors.RED,
    }
    return colors.get(state, typer.colors.WHITE)


def _confidence_color(confidence: str) -> str:
    colors = {
        "high": typer.colors.RED,
        "medium": typer.colors.YELLOW,
        "low": typer.colors.WHITE,
    }
    return colors.get(confidence, typer.colors.WHITE)


def _warn(message: str) -> None:
    typer.echo(typer.style(f"Warning: {message}", fg=typer.colors.YELLOW), err=True)


@app.command()
def generate(
    categories: list[str] = typer.Argument(..., help="Category ids or names, in order"),
    count: int = typer.Option(None, "--count", "-n", help="Items per category (1-50)"),
    difficulty: Difficulty = typer.Option(None, "--difficulty", "-d", help="Audience level"),
    model: str = typer.Option(None, "--model", "-m", help="Generation model"),
):
    """Generate content for one or more categories with live progress."""
    from rich.console import Console
    from rich.progress import BarColumn, MofNCompleteColumn, TextColumn
    from rich.progress import Progress as RichProgress

    config = _get_config()
    gen = config.generation

    async def _generate():
        flags, job_log = await _get_state(config)
        api = _get_api(config)
        try:
            marker = InProgressMarker(flags)
            warning = await marker.check_on_startup()
            if warning:
                _warn(warning)

            client = GenerationServiceClient(api)
            known = await client.list_categories()
            by_name = {c.name.lower(): c.id for c in known}
            category_ids = [by_name.get(c.lower(), c) for c in categories]

            orchestrator = GenerationOrchestrator(
                client,
                {c.id: c for c in known},
                content_set=ContentSet(),
                policy=BackoffPolicy(
                    base_delay=gen.base_delay,
                    max_attempts=gen.max_attempts,
                    pacing_floor=gen.pacing_floor,
                    pacing_per_item=gen.pacing_per_item,
                ),
                marker=marker,
                job_log=job_log,
            )

            console = Console(stderr=True)
            with RichProgress(
                TextColumn("{task.description:<28}"),
                BarColumn(),
                MofNCompleteColumn(),
                console=console,
            ) as bar:
                overall = bar.add_task("Categories", total=len(category_ids))
                items = bar.add_task("Items", total=1)

                def on_progress(progress: Progress) -> None:
                    bar.update(overall, completed=progress.completed, total=progress.total)
                    bar.update(
                        items,
                        description=progress.current_category or "Items",
                        completed=progress.current_item_in_category,
                        total=max(progress.items_in_category, 1),
                    )

                return await orchestrator.run(
                    category_ids,
                    gen.default_count if count is None else count,
                    difficulty=difficulty or gen.difficulty,
                    model=model or config.service.default_model,
                    progress_callback=on_progress,
                )
        finally:
            await api.close()
            await job_log.close()

    try:
        job = _run(_generate())
    except PreconditionError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)
    except ConsoleError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except KeyboardInterrupt:
        typer.echo("\nCancelled. The batch was interrupted.", err=True)
        raise typer.Exit(130)

    for outcome in job.outcomes:
        if outcome.success:
            typer.echo(typer.style(f"✓ {outcome.name}: {outcome.count}", fg=typer.colors.GREEN))
        else:
            typer.echo(typer.style(f"✗ {outcome.name}: {outcome.error}", fg=typer.colors.RED))
    typer.echo(job.summary())

    if job.outcomes and not job.successful_categories:
        raise typer.Exit(1)


@app.command()
def duplicates(
    status: str = typer.Option(None, "--status", "-s", help="Only scan items with this status"),
):
    """List groups of items sharing a normalized title."""
    config = _get_config()

    async def _scan():
        api = _get_api(config)
        try:
            content = await _load_content(HttpContentStore(api), status)
        finally:
            await api.close()
        return find_duplicates(content)

    try:
        groups = _run(_scan())
    except ConsoleError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not groups:
        typer.echo("No duplicates found.")
        return

    for group in groups:
        typer.echo(typer.style(f"{group.title} ({len(group)})", bold=True))
        for index, item in enumerate(group.items):
            marker = "keep" if index == 0 else "dup "
            flag = " [flagged]" if item.is_duplicate else ""
            typer.echo(f"  {marker} {item.id}{flag}")
    typer.echo(f"\n{len(groups)} duplicate group(s).")


@app.command()
def similar(
    item_id: str = typer.Argument(..., help="Item to find look-alikes for"),
    same_category: bool = typer.Option(
        None, "--same-category/--any-category", help="Restrict to the item's category"
    ),
):
    """Rank items similar to ITEM_ID by title and body."""
    config = _get_config()
    scorer = SimilarityScorer.from_config(config.duplicates)
    scoped = config.duplicates.category_scoped if same_category is None else same_category

    async def _similar():
        api = _get_api(config)
        try:
            content = await _load_content(HttpContentStore(api), None)
        finally:
            await api.close()
        target = content.get(item_id)
        if target is None:
            raise ConsoleError(f"Item '{item_id}' not found")
        return scorer.find_similar(target, content, same_category=scoped)

    try:
        matches = _run(_similar())
    except ConsoleError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not matches:
        typer.echo("No similar items found.")
        return

    typer.echo(f"{'ITEM ID':<26} {'SCORE':<7} {'CONF':<8} TITLE")
    typer.echo("-" * 80)
    for match in matches:
        typer.echo(
            f"{match.item_id or '-':<26} {match.overall:<7.2f} "
            + typer.style(f"{match.confidence:<8}", fg=_confidence_color(match.confidence))
            + f" {match.title}"
        )


@app.command()
def mark(
    status: str = typer.Option(None, "--status", "-s", help="Only scan items with this status"),
):
    """Flag every duplicate except the first of each group."""
    config = _get_config()

    async def _mark():
        api = _get_api(config)
        try:
            store = HttpContentStore(api)
            content = await _load_content(store, status)
            return await mark_duplicates_in_store(content, store)
        finally:
            await api.close()

    try:
        updated = _run(_mark())
    except ConsoleError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Flagged {updated} item(s) as duplicates.")


@app.command()
def cleanup(
    status: str = typer.Option(None, "--status", "-s", help="Only scan items with this status"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Keep one item per duplicate group and delete the rest."""
    config = _get_config()
    if not yes:
        typer.confirm("Delete every duplicate except one per group?", abort=True)

    async def _cleanup():
        api = _get_api(config)
        try:
            store = HttpContentStore(api)
            content = await _load_content(store, status)
            resolver = DuplicateResolver(
                store,
                GenerationServiceClient(api),
                content,
                rewrite_model=config.duplicates.rewrite_model,
            )
            return await resolver.bulk_cleanup()
        finally:
            await api.close()

    try:
        summary = _run(_cleanup())
    except ConsoleError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(summary.message)
    for item_id, error in summary.failed.items():
        typer.echo(typer.style(f"  failed {item_id}: {error}", fg=typer.colors.RED))
    if summary.failed:
        raise typer.Exit(1)


@app.command()
def resolve(
    keep_id: str = typer.Argument(..., help="Group member to keep"),
    action: ResolutionAction = typer.Option(
        ResolutionAction.DELETE, "--action", "-a", help="What to do with the other members"
    ),
    model: str = typer.Option(None, "--model", "-m", help="Rewrite model"),
):
    """Resolve the duplicate group containing KEEP_ID."""
    config = _get_config()

    async def _resolve():
        api = _get_api(config)
        try:
            store = HttpContentStore(api)
            content = await _load_content(store, None)
            group = next(
                (g for g in find_duplicates(content) if keep_id in g.item_ids), None
            )
            if group is None:
                raise ConsoleError(f"Item '{keep_id}' is not part of a duplicate group")
            resolver = DuplicateResolver(
                store,
                GenerationServiceClient(api),
                content,
                rewrite_model=config.duplicates.rewrite_model,
            )
            return await resolver.resolve(group, keep_id, action, model=model)
        finally:
            await api.close()

    try:
        resolution = _run(_resolve())
    except ConsoleError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    verb = "deleted" if resolution.action is ResolutionAction.DELETE else "rewritten"
    typer.echo(
        f"Group {resolution.state.value}: {len(resolution.succeeded)} {verb}, "
        f"{len(resolution.failed)} failed"
    )
    for item_id, error in resolution.failed.items():
        typer.echo(typer.style(f"  failed {item_id}: {error}", fg=typer.colors.RED))
    for item_id in resolution.unresolved_ids:
        if item_id not in resolution.failed:
            typer.echo(f"  still duplicate: {item_id}")
    if resolution.failed:
        raise typer.Exit(1)


@app.command()
def delete(
    item_ids: list[str] = typer.Argument(..., help="Items to delete"),
    reason: str = typer.Option("manual_delete", "--reason", "-r", help="Recorded delete reason"),
):
    """Delete items by id."""
    config = _get_config()

    async def _delete():
        api = _get_api(config)
        try:
            store = HttpContentStore(api)
            resolver = DuplicateResolver(store, GenerationServiceClient(api), ContentSet())
            return await resolver.delete(item_ids, reason)
        finally:
            await api.close()

    summary = _run(_delete())
    typer.echo(f"Deleted {summary.succeeded_count} item(s).")
    for item_id, error in summary.failed.items():
        typer.echo(typer.style(f"  failed {item_id}: {error}", fg=typer.colors.RED))
    if summary.failed:
        raise typer.Exit(1)


@app.command()
def rewrite(
    item_id: str = typer.Argument(..., help="Item to reword"),
    model: str = typer.Option(None, "--model", "-m", help="Rewrite model"),
):
    """Replace an item's wording with a rewritten variant."""
    config = _get_config()

    async def _rewrite():
        api = _get_api(config)
        try:
            store = HttpContentStore(api)
            resolver = DuplicateResolver(
                store,
                GenerationServiceClient(api),
                ContentSet(),
                rewrite_model=config.duplicates.rewrite_model,
            )
            return await resolver.rewrite(item_id, model)
        finally:
            await api.close()

    try:
        item = _run(_rewrite())
    except ConsoleError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Rewrote {item.id}: {item.title}")


@app.command()
def status(
    clear: bool = typer.Option(False, "--clear", help="Acknowledge and clear the in-progress marker"),
):
    """Show the in-progress marker and the most recent batches."""
    config = _get_config()

    async def _status():
        flags, job_log = await _get_state(config)
        try:
            marker = InProgressMarker(flags)
            warning = await marker.check_on_startup()
            if warning and clear:
                await marker.clear()
            return warning, await job_log.list_recent(limit=5)
        finally:
            await job_log.close()

    warning, recent = _run(_status())

    if warning and clear:
        typer.echo("In-progress marker cleared.")
    elif warning:
        _warn(warning)
        typer.echo("Run 'windspire-console status --clear' to acknowledge.")
    else:
        typer.echo("No batch in progress.")

    for entry in recent:
        state = entry["state"]
        typer.echo(
            typer.style(f"{entry['job_id']:<14} {state:<12}", fg=_state_color(state))
            + f" {entry['summary']}"
        )


@app.command()
def history(
    limit: int = typer.Option(20, "--limit", "-l", help="Number of batches to show"),
):
    """List logged generation batches, newest first."""
    config = _get_config()

    async def _history():
        _, job_log = await _get_state(config)
        try:
            return await job_log.list_recent(limit=limit)
        finally:
            await job_log.close()

    entries = _run(_history())
    if not entries:
        typer.echo("No generation batches found.")
        return

    typer.echo(f"{'JOB ID':<14} {'STATE':<12} {'ITEMS':<6} {'STARTED':<20} SUMMARY")
    typer.echo("-" * 80)
    for entry in entries:
        state = entry["state"]
        started = entry["created_at"][:19].replace("T", " ")
        typer.echo(
            typer.style(f"{entry['job_id']:<14} {state:<12} ", fg=_state_color(state))
            + f"{entry['produced']:<6} {started:<20} {entry['summary']}"
        )
        for failure in entry["failures"]:
            typer.echo(
                typer.style(
                    f"{'':14} ↳ {failure['category_id']} item {failure['item_index']}: "
                    f"{failure['error']}",
                    fg=typer.colors.BRIGHT_BLACK,
                )
            )


@app.command()
def config_path():
    """Print the config file location."""
    from windspire_console.config.loader import get_config_path

    typer.echo(str(get_config_path()))


if __name__ == "__main__":
    app()
