"""Typer CLI entrypoint for post-loader."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from typing import Callable, Optional

import typer
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository, LoaderConfig
from .engine import FetchError
from .logging_conf import app_log_path, configure_logging, tail_log
from .runner import LoadRunner, RunTimeoutError
from .ui import ProgressActivity, render_report, summarise

app = typer.Typer(
    help="Load blog posts with their authors and comments from the test server.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
config_app = typer.Typer(
    name="config",
    help="Inspect or change the stored configuration.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Inspect the application log.",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()

BANNER = "Post loader: posts, comments and their authors"


@dataclass
class AppState:
    repository: ConfigRepository
    runner_factory: Callable[[LoaderConfig], LoadRunner]


def build_state(verbose: bool) -> AppState:
    repository = ConfigRepository()
    configure_logging(verbose=verbose)
    return AppState(repository=repository, runner_factory=LoadRunner)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _progress_default_enabled() -> bool:
    return bool(getattr(sys.stdout, "isatty", lambda: False)())


def _apply_overrides(config: LoaderConfig, **overrides: object) -> LoaderConfig:
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return config
    payload = config.model_dump(mode="json")
    payload.update(changes)
    try:
        return LoaderConfig.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        raise typer.BadParameter(f"{first['loc'][0]}: {first['msg']}") from exc


def _render_config_table(config: LoaderConfig) -> Table:
    table = Table(title="Configuration", box=box.SIMPLE_HEAD)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value", style="green", overflow="fold")
    table.add_row("base_url", config.base_url)
    table.add_row("connect_timeout", f"{config.connect_timeout:g}s")
    table.add_row("read_timeout", f"{config.read_timeout:g}s")
    table.add_row("wait_timeout", f"{config.wait_timeout:g}s")
    table.add_row("log_http_bodies", str(config.log_http_bodies).lower())
    table.add_row("posts", config.posts_url())
    table.add_row("comments", config.url_for(config.endpoints.comments))
    table.add_row("author", config.url_for(config.endpoints.author))
    return table


app.add_typer(config_app, name="config")
app.add_typer(log_app, name="log")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    ctx.obj = build_state(verbose)


@app.command("run", help="Load posts, resolve authors and print the report.")
def run(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Override the server base URL."),
    wait_timeout: Optional[float] = typer.Option(
        None, "--wait-timeout", help="Seconds to wait for the run to finish."
    ),
    quiet: bool = typer.Option(False, "--quiet", help="Print only the summary line."),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON."),
) -> None:
    state = _get_state(ctx)
    config = _apply_overrides(state.repository.load(), base_url=base_url, wait_timeout=wait_timeout)
    logger = configure_logging().bind(component="cli")
    plain = quiet or as_json
    if not plain:
        console.print(BANNER, style="bold cyan")

    runner = state.runner_factory(config)
    activity = ProgressActivity(
        enabled=_progress_default_enabled() and not plain,
        console=console,
        budget=config.wait_timeout,
    )
    try:
        activity.start(f"Loading data from {config.base_url} ...")
        future = runner.submit()
        try:
            results = runner.wait(future, on_tick=activity.tick if activity.enabled else None)
        finally:
            activity.close()
    except RunTimeoutError as exc:
        console.print(f"Error: {exc}", style="red")
        raise typer.Exit(code=2)
    except FetchError as exc:
        logger.exception("run_failed", url=exc.url, error=str(exc))
        console.print(f"Error: {exc}", style="red")
        raise typer.Exit(code=1)
    finally:
        runner.shutdown()

    if as_json:
        typer.echo(json.dumps([result.to_dict() for result in results], ensure_ascii=False, indent=2))
        return
    summary = summarise(results)
    if quiet:
        console.print(
            f"Loaded {summary.posts} posts, {summary.comments} comments; "
            f"post authors {summary.post_authors_loaded}/{summary.posts}, "
            f"comment authors {summary.comment_authors_loaded}/{summary.comments}"
        )
        return
    console.print(f"Loaded {summary.posts} posts.", style="green")
    render_report(results, console)


@config_app.command("show", help="Print the effective configuration.")
def config_show(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    console.print(_render_config_table(state.repository.load()))
    console.print(f"Stored at {state.repository.locator.config_path()}", style="dim")


@config_app.command("set-base-url", help="Persist a new server base URL.")
def config_set_base_url(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Base URL, e.g. http://127.0.0.1:9999"),
) -> None:
    state = _get_state(ctx)
    try:
        config = state.repository.update(base_url=url)
    except ValidationError as exc:
        console.print(f"Invalid base URL: {exc.errors()[0]['msg']}", style="red")
        raise typer.Exit(code=1)
    console.print(f"Base URL set to {config.base_url}.", style="green")


@log_app.command("show", help="Show the last lines of the application log.")
def log_show(
    lines: int = typer.Option(50, "--lines", "-n", help="Number of lines to show."),
) -> None:
    path = app_log_path()
    content = tail_log(path, lines)
    if not content:
        console.print("The log is empty.", style="dim")
        return
    console.print(f"{path} (last {len(content)} lines)", style="cyan")
    console.print("".join(content), markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
