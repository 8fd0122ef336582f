"""Interactive submission prompts for the CLI layer.

This module is responsible for:

* Asking for the content and optional details via questionary.
* Pre-filling answers from command-line flags.
* Returning raw field values keyed by payload field name.

No validation beyond immediate feedback on the content field; the
core :func:`~closedloop.core.input_assembler.assemble` is the single
source of truth.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from closedloop.exceptions import ClosedLoopError, MissingDependencyError, input_error
from closedloop.settings import DEFAULT_SETTINGS, Settings


def _import_questionary() -> Any:
    """Import questionary lazily for interactive prompts."""
    try:
        import questionary
    except ModuleNotFoundError as exc:
        raise MissingDependencyError(
            "questionary is not installed. Install with: pip install questionary",
        ) from exc
    return questionary


# (field name, prompt text) for the optional details, in prompt order.
_OPTIONAL_QUESTIONS: tuple[tuple[str, str], ...] = (
    ("title", "What should we call this input? (optional):"),
    ("source_url", "Where did this come from? Support ticket, survey URL… (optional):"),
    ("customer_id", "Customer identifier (optional):"),
    ("reporter_name", "Who provided this input? (optional):"),
    ("reporter_email", "Their email address (optional):"),
)


def _content_validator(settings: Settings) -> Any:
    """Build a questionary validator backed by the core content rule."""
    from closedloop.core.validation import validate_content

    def _validate(text: str) -> bool | str:
        try:
            validate_content(text, settings)
        except ClosedLoopError as exc:
            return exc.message
        return True

    return _validate


def prompt_submission_fields(
    defaults: Mapping[str, str | None],
    settings: Settings = DEFAULT_SETTINGS,
) -> dict[str, str | None]:
    """Prompt for every submission field, pre-filled from *defaults*.

    Returns
    -------
    dict[str, str | None]
        Raw answers keyed by payload field name; skipped optionals are
        ``None`` and are dropped later by the assembler.

    Raises
    ------
    ClosedLoopError
        ``INVALID_INPUT`` if the user cancels the content prompt.
    """
    questionary = _import_questionary()

    content: str | None = questionary.text(
        "What customer input would you like to analyze?",
        default=defaults.get("content") or "",
        validate=_content_validator(settings),
        multiline=False,
    ).ask()  # Returns None on Ctrl+C

    if content is None:
        err = input_error("No content entered.")
        err.hint = "Pass the text as an argument: cl submit \"Dashboard is confusing\""
        raise err

    answers: dict[str, str | None] = {"content": content}
    for name, message in _OPTIONAL_QUESTIONS:
        answer: str | None = questionary.text(
            message,
            default=defaults.get(name) or "",
        ).ask()
        answers[name] = answer or None

    return answers
