"""Terminal prompts for reviewing detected column mappings (prompt_toolkit).

Kept apart from the mapping logic so the prompts are easy to drive in tests
with a pipe input.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggest, Suggestion
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.styles import Style

from .logging_setup import get_logger
from .mapping import (
    ColumnMapping,
    TransactionField,
    field_spec,
    remap_column,
    sample_column_values,
)

_logger = get_logger("bitbasis.term_ui")

FIELD_CHOICES: tuple[str, ...] = tuple(f.value for f in TransactionField)


class _PrefixSuggest(AutoSuggest):
    """Grey inline completion of the first choice starting with the typed text."""

    def __init__(self, vocab: Sequence[str]) -> None:
        self._vocab = list(vocab)

    def get_suggestion(self, buffer, document):
        text = document.text
        if not text:
            return None
        match = _best_prefix_match(self._vocab, text)
        return Suggestion(match[len(text) :]) if match else None


def _best_prefix_match(words: Sequence[str], text: str) -> str | None:
    if not text:
        return None
    lower = text.lower()
    # An exact choice never gets extended ("to_address" vs "to_address_name").
    if any(w.lower() == lower for w in words):
        return None
    return next((w for w in words if w.lower().startswith(lower)), None)


def select_field(
    choices: Sequence[str],
    *,
    default: str,
    message: str = "Field (Enter to accept): ",
    session: PromptSession | None = None,
) -> str:
    """Prompt for one of ``choices`` with ``default`` pre-filled.

    Enter accepts the buffer (completing a typed prefix first); Tab completes
    the inline suggestion or opens the completion menu. Text matching no
    choice falls back to ``default``.
    """

    words = list(choices)
    by_lower = {w.lower(): w for w in words}
    completer = WordCompleter(words, ignore_case=True, match_middle=True)

    kb = KeyBindings()

    @kb.add("tab", eager=True)
    def _(event) -> None:  # pragma: no cover - integration path
        b = event.app.current_buffer
        cand = _best_prefix_match(words, b.document.text)
        if cand:
            b.insert_text(cand[len(b.document.text) :])
        elif b.complete_state is None:
            b.start_completion(select_first=True)
        else:
            b.complete_next()

    @kb.add("enter", eager=True)
    def _(event) -> None:  # pragma: no cover
        b = event.app.current_buffer
        cs = b.complete_state
        if cs is not None and cs.current_completion is not None:
            b.apply_completion(cs.current_completion)
        else:
            cand = _best_prefix_match(words, b.document.text)
            if cand:
                b.insert_text(cand[len(b.document.text) :])
        b.validate_and_handle()

    if session is None:
        sess: PromptSession = PromptSession(key_bindings=kb)
    else:
        sess = PromptSession(
            input=getattr(session, "input", None),
            output=getattr(session, "output", None),
            key_bindings=kb,
        )

    result = sess.prompt(
        message=message,
        completer=completer,
        default=default,
        key_bindings=kb,
        auto_suggest=_PrefixSuggest(words),
        style=Style.from_dict({"auto-suggestion": "fg:#888888"}),
    )
    picked = by_lower.get(result.strip().lower())
    if picked is None:
        if result.strip():
            _logger.info("select_field_unknown value=%r; keeping %r", result, default)
        return default
    return picked


def _describe(mapping: ColumnMapping, samples: Sequence[str]) -> str:
    current = (
        field_spec(mapping.transaction_field).label
        if mapping.transaction_field is not None
        else "unmapped"
    )
    marker = " (auto)" if mapping.is_confident else ""
    shown = ", ".join(samples[:3]) or "no values"
    return f"{mapping.csv_column} [{shown}] {current}{marker} > "


def review_mappings(
    mappings: Sequence[ColumnMapping],
    rows: Sequence[Mapping[str, str]],
    *,
    session: PromptSession | None = None,
) -> list[ColumnMapping]:
    """Walk every column and let the user confirm or change its field."""

    result = list(mappings)
    for mapping in mappings:
        samples = sample_column_values(rows, mapping.csv_column)
        current = mapping.transaction_field
        default = current.value if current is not None else TransactionField.IGNORE.value
        choice = select_field(
            FIELD_CHOICES,
            default=default,
            message=_describe(mapping, samples),
            session=session,
        )
        if choice == default:
            continue
        new_field = TransactionField(choice)
        result = remap_column(result, mapping.csv_column, new_field)
        _logger.info(
            "mapping_override column=%r from=%s to=%s", mapping.csv_column, current, new_field
        )
    return result


__all__ = ["FIELD_CHOICES", "review_mappings", "select_field"]
