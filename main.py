from __future__ import annotations

import logging
import signal
from dataclasses import dataclass
from functools import partial
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from models.outcome import CycleReport, Outcome
from services.auth_service import AuthService
from services.email_classifier import EmailClassifier
from services.errors import AuthorizationError, CredentialError, GmailError
from services.gmail_service import GmailService
from services.label_service import LabelManager
from services.persistence_service import RepliedStore
from services.poll_loop import PollLoop, random_interval_ms
from services.reply_composer import ReplyComposer
from services.responder import AutoResponder
from services.statistics_service import StatisticsService
from utils.config import AppConfig, load_config
from utils.logger import configure_logging


LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class AppContext:
    config: AppConfig
    auth: AuthService
    stats: StatisticsService
    replied_store: Optional[RepliedStore]
    console: Console

    def connect(self, interactive: bool = False) -> GmailService:
        creds = self.auth.authenticate(interactive=interactive)
        return GmailService.from_credentials(creds, self.config.account.user_id)

    def build_responder(self, gmail: GmailService) -> AutoResponder:
        return AutoResponder(
            gmail,
            EmailClassifier(),
            ReplyComposer(self.config.signature),
            self.config.label_name,
            replied_store=self.replied_store,
        )

    def build_loop(self, min_interval: int, max_interval: int) -> PollLoop:
        return PollLoop(
            connect=self.connect,
            build_responder=self.build_responder,
            interval=partial(random_interval_ms, min_interval * 1000, max_interval * 1000),
            on_cycle=[self.stats.record_cycle],
        )


def build_context(env_file: str) -> AppContext:
    config = load_config(env_file)
    configure_logging(config.log_dir, config.log_level)
    replied_store = RepliedStore(config.db_path) if config.replied_store_enabled else None
    return AppContext(
        config=config,
        auth=AuthService(config.account),
        stats=StatisticsService(config.stats_file),
        replied_store=replied_store,
        console=Console(),
    )


@click.group(invoke_without_command=True)
@click.option("--env-file", default=".env", show_default=True, help="Path to the .env file")
@click.pass_context
def cli(ctx: click.Context, env_file: str) -> None:
    """Gmail vacation auto-responder. Runs the polling daemon when no command is given."""

    try:
        ctx.obj = build_context(env_file)
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc
    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


@cli.command("run")
@click.option("--min-interval", type=click.IntRange(min=1), default=None, help="Shortest wait between polls, in seconds")
@click.option("--max-interval", type=click.IntRange(min=1), default=None, help="Longest wait between polls, in seconds")
@click.pass_obj
def run(app: AppContext, min_interval: int | None = None, max_interval: int | None = None) -> None:
    """Poll the inbox at random intervals and auto-reply to unread mail."""

    low = min_interval or app.config.min_interval
    high = max_interval or app.config.max_interval
    if high < low:
        raise click.BadParameter("must not be lower than --min-interval", param_hint="--max-interval")

    try:
        app.auth.authenticate(interactive=True)
    except (CredentialError, AuthorizationError) as exc:
        LOGGER.error("Authorization failed, polling will keep failing until it succeeds: %s", exc)

    loop = app.build_loop(low, high)
    signal.signal(signal.SIGTERM, lambda *_: loop.stop())
    app.console.print(
        f"Polling every {low}-{high} seconds, labelling with '{app.config.label_name}'. Press Ctrl+C to stop."
    )
    try:
        loop.run_forever()
    except KeyboardInterrupt:
        loop.stop()
        app.console.print("Auto-responder stopped.")


@cli.command("once")
@click.pass_obj
def once(app: AppContext) -> None:
    """Run a single poll cycle and print what happened."""

    loop = app.build_loop(app.config.min_interval, app.config.max_interval)
    report = loop.run_cycle()
    if report.error:
        app.console.print(f"[bold red]Cycle failed:[/bold red] {report.error}")
        raise SystemExit(1)
    if not report.results:
        app.console.print("[bold green]No unread emails found.[/bold green]")
        return
    app.console.print(_build_cycle_table(report))


@cli.command("authorize")
@click.pass_obj
def authorize(app: AppContext) -> None:
    """Run the console OAuth flow and store the token."""

    try:
        app.auth.authorize_interactively()
    except (CredentialError, AuthorizationError) as exc:
        raise click.ClickException(str(exc)) from exc
    app.console.print("[bold green]Authorization complete.[/bold green]")


@cli.command("ensure-label")
@click.argument("label_name", required=False)
@click.pass_obj
def ensure_label(app: AppContext, label_name: str | None) -> None:
    """Create the auto-reply label if it does not exist."""

    name = label_name or app.config.label_name
    try:
        label_id = LabelManager(app.connect()).ensure_label(name)
    except (CredentialError, GmailError) as exc:
        raise click.ClickException(str(exc)) from exc
    app.console.print(f"Label {name} is ready (id: {label_id}).")


@cli.command("stats")
@click.pass_obj
def stats(app: AppContext) -> None:
    """Display local activity statistics."""

    snapshot = app.stats.snapshot()
    if not snapshot:
        app.console.print("No stats recorded yet.")
        return

    table = Table(title="Auto-responder stats")
    table.add_column("Metric")
    table.add_column("Value")
    table.add_row("Poll cycles", str(snapshot.get("cycles", 0)))
    table.add_row("Emails inspected", str(snapshot.get("emails_seen", 0)))
    table.add_row("Replies sent", str(snapshot.get("replies_sent", 0)))
    table.add_row("Already replied", str(snapshot.get("already_replied", 0)))
    table.add_row("Failures", str(snapshot.get("failures", 0)))
    table.add_row("Cycle errors", str(snapshot.get("cycle_errors", 0)))
    table.add_row("Last cycle", snapshot.get("last_cycle", "-"))
    app.console.print(table)

    if app.replied_store:
        recent = app.replied_store.recent_entries()
        if recent:
            replies = Table(title="Recent replies")
            replies.add_column("Message ID", overflow="fold")
            replies.add_column("Recipient")
            replies.add_column("Replied at")
            for entry in recent:
                replies.add_row(entry.message_id, entry.recipient or "-", entry.replied_at.isoformat())
            app.console.print(replies)


def _build_cycle_table(report: CycleReport) -> Table:
    table = Table(title=f"Poll cycle at {report.started_at:%Y-%m-%d %H:%M:%S}")
    table.add_column("ID", overflow="fold")
    table.add_column("Outcome")
    table.add_column("Recipient")
    table.add_column("Error")
    styles = {Outcome.REPLIED: "green", Outcome.FAILED: "red"}
    for result in report.results:
        style = styles.get(result.outcome, "dim")
        outcome = result.outcome.value
        if result.stage:
            outcome = f"{outcome} ({result.stage.value})"
        table.add_row(result.message_id, f"[{style}]{outcome}[/{style}]", result.recipient or "-", result.error or "")
    return table


def main() -> None:
    cli(standalone_mode=True)


if __name__ == "__main__":
    main()
