"""Human-readable rendering of API records for the CLI layer.

All display-related logic lives here — no business logic, no HTTP, no
validation.  Records are the plain dicts returned by the service.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from closedloop.cli.console import console, escape
from closedloop.core.models import PollOutcome, TerminalState
from closedloop.exceptions import MissingDependencyError

_STATUS_STYLES: dict[str, str] = {
    "completed": "green",
    "addressed": "green",
    "processing": "yellow",
    "pending_step2": "yellow",
    "in_review": "yellow",
    "new": "blue",
    "archived": "dim",
    "failed": "red",
}


def _import_rich_table() -> type[Any]:
    """Import rich table lazily for list rendering."""
    try:
        from rich.table import Table
    except ModuleNotFoundError as exc:
        raise MissingDependencyError(
            "rich is not installed. Install with: pip install rich",
        ) from exc
    return Table


# ---------------------------------------------------------------------------
# Presentation helpers (pure transforms, no I/O)
# ---------------------------------------------------------------------------

def _format_timestamp(value: object) -> str:
    """Render an ISO-8601 timestamp in local time, or ``"Unknown"``."""
    if not isinstance(value, str) or not value:
        return "Unknown"
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return escape(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.strftime("%Y-%m-%d %H:%M:%S")


def _format_status(status: object) -> str:
    """Wrap *status* in Rich markup matching its meaning."""
    text = str(status) if status else "unknown"
    style = _STATUS_STYLES.get(text, "red")
    label = "pending" if text == "pending_step2" else text
    return f"[{style}]{escape(label)}[/{style}]"


def _or_null(value: object) -> str:
    if value is None or value == "":
        return "[dim]null[/dim]"
    return escape(value)


def _count(value: object) -> str:
    return str(value) if isinstance(value, int) else "0"


def _items(result: Mapping[str, Any], *keys: str) -> list[dict[str, Any]]:
    """Pull the list of records out of a list response."""
    for key in keys:
        value = result.get(key)
        if isinstance(value, list):
            return [entry for entry in value if isinstance(entry, dict)]
    return []


def _render_fields(heading: str, rows: Sequence[tuple[str, str]]) -> None:
    console.print(f"\n[bold blue]{heading}[/bold blue]")
    console.print("[dim]" + "─" * 50 + "[/dim]")
    for label, value in rows:
        console.print(f"[blue]{label}:[/blue] {value}")


def _render_pagination(result: Mapping[str, Any], noun: str) -> None:
    pagination = result.get("pagination")
    if not isinstance(pagination, dict):
        return
    page = pagination.get("page", 1)
    pages = pagination.get("pages", 1)
    total = pagination.get("total", 0)
    console.print(f"\nPage {escape(page)} of {escape(pages)} ({escape(total)} total {noun})")
    if isinstance(page, int) and isinstance(pages, int) and page < pages:
        console.print(f"[dim]Use --page {page + 1} to see the next page[/dim]")


# ---------------------------------------------------------------------------
# Submission & status
# ---------------------------------------------------------------------------

def render_submitted(submission_id: str, *, waiting: bool) -> None:
    submission_id = escape(submission_id)
    console.print("[bold green]Submitted![/bold green]")
    console.print(f"[blue]Input ID:[/blue] {submission_id}")
    if not waiting:
        console.print(f"[dim]Run \"cl status {submission_id}\" to check progress[/dim]")
        console.print("[dim]Or use \"cl submit --wait\" to wait for completion[/dim]")


def render_outcome(outcome: PollOutcome) -> None:
    """Summarise how a tracked submission ended."""
    record = outcome.payload or {}
    submission_id = escape(outcome.submission_id)
    if outcome.state is TerminalState.COMPLETED:
        feedback = _count(record.get("feedback_count"))
        credits = _count(record.get("credits_consumed"))
        console.print("[bold green]Processing complete![/bold green]")
        console.print(
            f"[blue]Results:[/blue] {feedback} feedback generated, {credits} credits used"
        )
        if feedback != "0":
            console.print("[dim]Run \"cl feedback\" to see generated feedback[/dim]")
    elif outcome.state is TerminalState.TIMED_OUT:
        console.print(
            "[yellow]Processing is still in progress. "
            "You can check status manually:[/yellow]"
        )
        console.print(f"  cl status {submission_id}")
    elif outcome.state is TerminalState.CANCELLED:
        console.print("\n[yellow]Stopped by user.[/yellow]")
        console.print(f"[dim]Resume with: cl status {submission_id} --watch[/dim]")


def render_status(record: Mapping[str, Any]) -> None:
    _render_fields(
        "Processing Status",
        (
            ("ID", _or_null(record.get("id"))),
            ("Title", _or_null(record.get("title"))),
            ("Status", _format_status(record.get("status"))),
            ("Created", _format_timestamp(record.get("created_at"))),
            ("Updated", _format_timestamp(record.get("updated_at"))),
            ("Credits Used", _count(record.get("credits_consumed"))),
            ("AI Feedback Generated", _count(record.get("feedback_count"))),
        ),
    )
    if record.get("status") == "processing":
        console.print(
            f"\n[yellow]Still processing... Use \"cl status {escape(record.get('id'))} --watch\""
            " to monitor[/yellow]"
        )


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

def render_input_detail(record: Mapping[str, Any]) -> None:
    _render_fields(
        "Input Details",
        (
            ("ID", _or_null(record.get("id"))),
            ("Title", _or_null(record.get("title"))),
            ("Status", _format_status(record.get("status"))),
            ("Content", _or_null(record.get("content"))),
            ("Source URL", _or_null(record.get("source_url"))),
            ("Customer ID", _or_null(record.get("customer_id"))),
            ("Reporter", _or_null(record.get("reporter_name"))),
            ("Email", _or_null(record.get("reporter_email"))),
            ("AI Feedback Generated", _count(record.get("feedback_count"))),
            ("Credits Used", _count(record.get("credits_consumed"))),
            ("Submitted", _format_timestamp(record.get("created_at"))),
            ("Updated", _format_timestamp(record.get("updated_at"))),
        ),
    )


def render_inputs(result: Mapping[str, Any]) -> None:
    inputs = _items(result, "inputs", "data", "items")
    if not inputs:
        console.print("[yellow]No inputs found.[/yellow]")
        console.print('Submit your first input: cl submit "Your customer feedback here"')
        return

    table_class = _import_rich_table()
    table = table_class(
        title="Submitted Inputs",
        show_header=True,
        header_style="bold magenta",
        border_style="dim",
    )
    table.add_column("ID", no_wrap=True)
    table.add_column("Title")
    table.add_column("Status", justify="center")
    table.add_column("Feedback", justify="right")
    table.add_column("Credits", justify="right")
    table.add_column("Submitted")

    for entry in inputs:
        table.add_row(
            escape(entry.get("id", "")),
            _or_null(entry.get("title")),
            _format_status(entry.get("status")),
            _count(entry.get("feedback_count")),
            _count(entry.get("credits_consumed")),
            _format_timestamp(entry.get("created_at")),
        )

    console.print()
    console.print(table)
    _render_pagination(result, "inputs")


# ---------------------------------------------------------------------------
# Feedback
# ---------------------------------------------------------------------------

def render_feedback_detail(record: Mapping[str, Any]) -> None:
    _render_fields(
        "Feedback Details",
        (
            ("ID", _or_null(record.get("id"))),
            ("Title", _or_null(record.get("title") or record.get("signal_title"))),
            ("Severity", _or_null(record.get("severity"))),
            ("Deal Blocker", "yes" if record.get("deal_blocker") else "no"),
            ("Pain Point", _or_null(record.get("pain_point"))),
            ("Workaround", _or_null(record.get("workaround"))),
            ("Competitor Gap", _or_null(record.get("competitor_gap"))),
            ("Willingness to Pay", _or_null(record.get("willingness_to_pay"))),
            ("Use Case", _or_null(record.get("use_case"))),
            ("Feature Area", _or_null(record.get("feature_area"))),
            ("Input ID", _or_null(record.get("input_id"))),
            ("Created", _format_timestamp(record.get("timestamp") or record.get("created_at"))),
        ),
    )


def render_feedback_list(result: Mapping[str, Any], *, search: str | None = None) -> None:
    feedbacks = _items(result, "feedbacks", "data", "items")
    if not feedbacks:
        console.print("[yellow]No feedback found.[/yellow]")
        if search:
            console.print(
                "[dim]Try a different search term or drop --search to see all feedback[/dim]"
            )
        return

    table_class = _import_rich_table()
    table = table_class(
        title="AI-Generated Feedback",
        show_header=True,
        header_style="bold magenta",
        border_style="dim",
    )
    table.add_column("ID", no_wrap=True)
    table.add_column("Title")
    table.add_column("Severity", justify="center")
    table.add_column("Input ID", no_wrap=True)
    table.add_column("Created")

    for entry in feedbacks:
        table.add_row(
            escape(entry.get("id", "")),
            _or_null(entry.get("title")),
            escape(entry.get("severity") or "medium"),
            _or_null(entry.get("input_id")),
            _format_timestamp(entry.get("timestamp") or entry.get("created_at")),
        )

    console.print()
    console.print(table)
    _render_pagination(result, "feedback")


# ---------------------------------------------------------------------------
# Team settings
# ---------------------------------------------------------------------------

def render_team_website(record: Mapping[str, Any], *, updated: bool = False) -> None:
    website = record.get("website")
    if updated:
        console.print("[bold green]Team website updated successfully[/bold green]")
    if not website:
        console.print("[yellow]No website set for this team[/yellow]")
        console.print("[dim]Set one with: cl team website https://example.com[/dim]")
        return
    console.print(f"[blue]Website:[/blue] {escape(website)}")
    console.print(f"[blue]Updated:[/blue] {_format_timestamp(record.get('updated_at'))}")
