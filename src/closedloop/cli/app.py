"""CLI application entry point and command routing for closedloop-cli.

This module is the **sole error boundary** for the entire application.
It catches :class:`~closedloop.exceptions.ClosedLoopError`,
``KeyboardInterrupt``, and any unexpected ``Exception``, rendering
user-friendly messages via Rich and returning well-defined exit codes.

Architecture notes
------------------
* No business logic lives here; all work is delegated to the core
  service and infrastructure layers.
* This module is the only place that translates between the domain world
  and the OS process exit code.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Any

from closedloop.cli import exit_codes
from closedloop.cli.console import console, emit_json, escape
from closedloop.core.models import PollOutcome, TerminalState
from closedloop.exceptions import ClosedLoopError, processing_error
from closedloop.settings import Settings, load_settings
from closedloop.version import __version__


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser.

    * ``cl submit [content]``   — submit customer input (optionally wait)
    * ``cl status <id>``        — processing status (optionally watch)
    * ``cl inputs [id]``        — list inputs or show one
    * ``cl feedback [id]``      — list AI feedback or show one
    * ``cl config``             — show effective configuration
    * ``cl team website [url]`` — show or set the team website
    """
    parser = argparse.ArgumentParser(
        prog="cl",
        description="ClosedLoop AI CLI: AI-powered customer feedback analysis.",
        epilog="Get API keys for free at https://closedloop.sh",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log HTTP requests and polling details to stderr.",
    )
    parser.add_argument(
        "--api-key",
        default=None,
        help="API key to use (overrides CLOSEDLOOP_API_KEY).",
    )

    json_parent = argparse.ArgumentParser(add_help=False)
    json_parent.add_argument("--json", action="store_true", help="Output in JSON format.")

    page_parent = argparse.ArgumentParser(add_help=False)
    page_parent.add_argument("--page", type=int, default=None, help="Page number (default 1).")
    page_parent.add_argument("--limit", type=int, default=None, help="Items per page (default 20).")

    commands = parser.add_subparsers(dest="command", metavar="<command>")

    submit = commands.add_parser(
        "submit",
        parents=[json_parent],
        help="Submit customer input for AI analysis.",
    )
    submit.add_argument("content", nargs="?", default=None, help="Customer input to analyze.")
    submit.add_argument("-t", "--title", help="Title for this input.")
    submit.add_argument("-u", "--url", help="Source URL (support ticket, survey, etc.).")
    submit.add_argument("-c", "--customer", help="Customer identifier.")
    submit.add_argument("-n", "--name", help="Name of the person who provided the input.")
    submit.add_argument("-e", "--email", help="Email of the person who provided the input.")
    submit.add_argument("--interactive", action="store_true", help="Fill in details step by step.")
    submit.add_argument(
        "-w", "--wait", action="store_true", help="Wait until processing is completed.",
    )

    status = commands.add_parser(
        "status",
        parents=[json_parent],
        help="Check processing status of a submission.",
    )
    status.add_argument("id", help="Input ID returned by 'cl submit'.")
    status.add_argument("--watch", action="store_true", help="Poll until processing settles.")

    inputs = commands.add_parser(
        "inputs",
        parents=[json_parent, page_parent],
        help="List submitted inputs or show one.",
    )
    inputs.add_argument("id", nargs="?", default=None, help="Input ID to show.")

    feedback = commands.add_parser(
        "feedback",
        parents=[json_parent, page_parent],
        help="List AI-generated feedback or show one.",
    )
    feedback.add_argument("id", nargs="?", default=None, help="Feedback ID to show.")
    feedback.add_argument("--search", default=None, help="Search feedback by content.")

    config = commands.add_parser(
        "config",
        parents=[json_parent],
        help="Show the effective configuration.",
    )
    config.add_argument(
        "--check", action="store_true", help="Verify the API key against the service.",
    )

    team = commands.add_parser("team", help="Manage team settings.")
    team_commands = team.add_subparsers(dest="team_command", metavar="<subcommand>")
    website = team_commands.add_parser(
        "website",
        parents=[json_parent],
        help="Show or set the team website.",
    )
    website.add_argument(
        "website", nargs="?", default=None, help="New website URL (omit to show the current one).",
    )

    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------

def _build_service(settings: Settings) -> Any:
    """Instantiate the HTTP client and core service for *settings*."""
    from closedloop.core.submission_service import SubmissionService
    from closedloop.core.validation import validate_api_key
    from closedloop.infra.http_client import ClosedLoopClient

    if settings.api_key:
        settings = settings.with_overrides(
            api_key=validate_api_key(settings.api_key, settings),
        )
    client = ClosedLoopClient(settings)
    return SubmissionService(client, settings)


def _outcome_document(outcome: PollOutcome) -> dict[str, Any]:
    """JSON form of a terminal poll outcome."""
    if outcome.state is TerminalState.SUBMITTED:
        return {"success": True, "data": {"id": outcome.submission_id}}
    if outcome.state is TerminalState.COMPLETED:
        return {"success": True, "data": outcome.payload}
    if outcome.state is TerminalState.FAILED:
        err = processing_error("Processing failed")
        return {**err.to_dict(), "data": outcome.payload}
    if outcome.state is TerminalState.TIMED_OUT:
        return {
            "success": False,
            "error": "Processing timeout",
            "data": {
                "id": outcome.submission_id,
                "message": "Processing is taking longer than expected",
            },
        }
    return {
        "success": False,
        "error": "Stopped by user",
        "data": {"id": outcome.submission_id},
    }


def _finish_outcome(outcome: PollOutcome, *, as_json: bool) -> int:
    """Report *outcome* and return the process exit code.

    ``FAILED`` becomes a processing error; ``TIMED_OUT`` is informational
    and exits cleanly; ``CANCELLED`` exits like an interrupted command.
    """
    if as_json:
        emit_json(_outcome_document(outcome))
    else:
        from closedloop.cli.render import render_outcome

        render_outcome(outcome)

    if outcome.state is TerminalState.FAILED:
        if as_json:
            return exit_codes.GENERAL_ERROR
        err = processing_error("Processing failed. Check the status for more details.")
        err.hint = f"cl status {outcome.submission_id}"
        raise err
    if outcome.state is TerminalState.CANCELLED:
        return exit_codes.KEYBOARD_INTERRUPT
    return exit_codes.SUCCESS


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

def _handle_submit(args: argparse.Namespace, settings: Settings) -> int:
    """Validate, submit and optionally wait for a single input.

    Flow:
    1. Gather raw fields from flags (or interactive prompts).
    2. Validate + sanitize via the core assembler (inside the service).
    3. Submit once.
    4. With ``--wait``, poll with a Rich spinner until the input settles.
    """
    raw_fields: dict[str, str | None] = {
        "content": args.content,
        "title": args.title,
        "source_url": args.url,
        "customer_id": args.customer,
        "reporter_name": args.name,
        "reporter_email": args.email,
    }
    if args.interactive or not args.content:
        from closedloop.cli.prompts import prompt_submission_fields

        raw_fields = prompt_submission_fields(raw_fields, settings)

    service = _build_service(settings)

    if args.json:
        outcome = service.submit_and_track(raw_fields, wait=args.wait)
        return _finish_outcome(outcome, as_json=True)

    from closedloop.cli.render import render_submitted

    def _on_submitted(submission_id: str) -> None:
        render_submitted(submission_id, waiting=args.wait)

    if not args.wait:
        outcome = service.submit_and_track(raw_fields, on_submitted=_on_submitted)
        return _finish_outcome(outcome, as_json=False)

    from closedloop.cli.poll_display import RichPollHook

    hook = RichPollHook(settings.max_poll_attempts)

    def _on_submitted_then_spin(submission_id: str) -> None:
        # The live display must not be running while the id is printed.
        _on_submitted(submission_id)
        hook.start()

    try:
        outcome = service.submit_and_track(
            raw_fields,
            wait=True,
            on_submitted=_on_submitted_then_spin,
            on_attempt=hook,
        )
    finally:
        hook.stop()
    return _finish_outcome(outcome, as_json=False)


def _handle_status(args: argparse.Namespace, settings: Settings) -> int:
    """Show status once, or keep watching until the input settles."""
    service = _build_service(settings)
    record = service.get_status(args.id)
    current = record.get("status")

    if not args.watch or current in ("completed", "failed"):
        if args.watch:
            state = TerminalState.COMPLETED if current == "completed" else TerminalState.FAILED
            outcome = PollOutcome(state=state, submission_id=args.id, payload=record)
            return _finish_outcome(outcome, as_json=args.json)
        if args.json:
            emit_json({"success": True, "data": record})
        else:
            from closedloop.cli.render import render_status

            render_status(record)
        return exit_codes.SUCCESS

    if args.json:
        return _finish_outcome(service.watch(args.id), as_json=True)

    from closedloop.cli.poll_display import RichPollHook

    with RichPollHook(settings.max_poll_attempts) as hook:
        outcome = service.watch(args.id, on_attempt=hook)
    return _finish_outcome(outcome, as_json=False)


def _handle_inputs(args: argparse.Namespace, settings: Settings) -> int:
    from closedloop.cli.render import render_input_detail, render_inputs

    service = _build_service(settings)
    if args.id:
        record = service.get_input(args.id)
        if args.json:
            emit_json({"success": True, "data": record})
        else:
            render_input_detail(record)
        return exit_codes.SUCCESS

    result = service.list_inputs(args.page, args.limit)
    if args.json:
        emit_json({"success": True, "data": result})
    else:
        render_inputs(result)
    return exit_codes.SUCCESS


def _handle_feedback(args: argparse.Namespace, settings: Settings) -> int:
    from closedloop.cli.render import render_feedback_detail, render_feedback_list

    service = _build_service(settings)
    if args.id:
        record = service.get_feedback(args.id)
        if args.json:
            emit_json({"success": True, "data": record})
        else:
            render_feedback_detail(record)
        return exit_codes.SUCCESS

    result = service.list_feedback(args.page, args.limit, args.search)
    if args.json:
        emit_json({"success": True, "data": result})
    else:
        render_feedback_list(result, search=args.search)
    return exit_codes.SUCCESS


def _handle_config(args: argparse.Namespace, settings: Settings) -> int:
    from closedloop.cli.config_report import config_document, run_config_report

    key_check: bool | None = None
    if args.check:
        _build_service(settings).check_api_key()
        key_check = True

    if args.json:
        emit_json(config_document(settings))
        return exit_codes.SUCCESS if settings.api_key else exit_codes.GENERAL_ERROR
    return run_config_report(settings, key_check=key_check)


def _handle_team(args: argparse.Namespace, settings: Settings) -> int:
    if args.team_command is None:
        console.print("[yellow]Use team subcommands to manage team settings[/yellow]")
        console.print("Available commands: website")
        return exit_codes.SUCCESS

    service = _build_service(settings)
    updated = args.website is not None
    if updated:
        record = service.update_team_website(args.website)
    else:
        record = service.get_team_website()

    if args.json:
        emit_json(
            {
                "success": True,
                "data": {
                    "website": record.get("website") or None,
                    "updated_at": record.get("updated_at"),
                },
            }
        )
    else:
        from closedloop.cli.render import render_team_website

        render_team_website(record, updated=updated)
    return exit_codes.SUCCESS


_HANDLERS = {
    "submit": _handle_submit,
    "status": _handle_status,
    "inputs": _handle_inputs,
    "feedback": _handle_feedback,
    "config": _handle_config,
    "team": _handle_team,
}


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the closedloop CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return exit_codes.SUCCESS

    _configure_logging(args.verbose)

    try:
        settings = load_settings(os.environ).with_overrides(api_key=args.api_key)
        return _HANDLERS[args.command](args, settings)
    except ClosedLoopError as exc:
        if not getattr(args, "json", False):
            raise
        emit_json(exc.to_dict())
        return exc.exit_code


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except ClosedLoopError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(exc.message)}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {escape(exc.hint)}")
        sys.exit(exc.exit_code)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {escape(exc)}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
