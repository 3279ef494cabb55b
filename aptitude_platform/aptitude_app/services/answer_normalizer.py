"""Resolve whatever the oracle calls "the correct answer" to an option index.

The oracle is asked for an integer index but answers with letters, digits,
option text or phrases such as "Option B" often enough that every shape is
accepted. Nothing here raises: an unresolvable token becomes index 0, which
is written to the audit logger because a wrong default silently corrupts
the stored answer key.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Sequence, Tuple

from ..logging_config import AUDIT_LOGGER_NAME
from ..metrics import record_answer_fallback

audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)

OPTION_COUNT = 4
LETTER_INDEX = {"a": 0, "b": 1, "c": 2, "d": 3}
OPTION_PATTERN = re.compile(r"(?:option|answer)\s*([a-d0-3])", re.IGNORECASE)

RULE_INDEX = "index"
RULE_LETTER = "letter"
RULE_DIGIT = "digit"
RULE_CONTENT = "content"
RULE_PATTERN = "pattern"
RULE_FALLBACK = "fallback"


def _match_option_text(answer: str, options: Sequence[Any]) -> int | None:
    lowered = [str(option).strip().lower() for option in options[:OPTION_COUNT]]
    for idx, option in enumerate(lowered):
        if option == answer:
            return idx
    for idx, option in enumerate(lowered):
        if option and (answer in option or option in answer):
            return idx
    return None


def resolve_answer_index(raw: Any, options: Sequence[Any]) -> Tuple[int, str]:
    """Return ``(index, rule)`` where ``rule`` names the branch that matched."""
    if isinstance(raw, int) and not isinstance(raw, bool) and 0 <= raw < OPTION_COUNT:
        return raw, RULE_INDEX

    text = "" if raw is None else str(raw).strip()
    if len(text) == 1 and text.lower() in LETTER_INDEX:
        return LETTER_INDEX[text.lower()], RULE_LETTER
    if len(text) == 1 and text in "0123":
        return int(text), RULE_DIGIT

    if text:
        matched = _match_option_text(text.lower(), options or [])
        if matched is not None:
            return matched, RULE_CONTENT

        found = OPTION_PATTERN.search(text)
        if found:
            token = found.group(1).lower()
            if token.isdigit():
                return int(token), RULE_PATTERN
            return LETTER_INDEX[token], RULE_PATTERN

    return 0, RULE_FALLBACK


def report_fallback(raw: Any, options: Sequence[Any], **context: Any) -> None:
    """Count and audit-log a token that fell through to index 0."""
    record_answer_fallback()
    audit_logger.warning(
        "Correct answer %r did not match any option; defaulted to index 0",
        raw,
        extra={
            "audit": {
                "event": "answer_index_fallback",
                "raw": repr(raw),
                "options": [str(option) for option in (options or [])],
                **context,
            }
        },
    )


def normalize_answer_index(raw: Any, options: Sequence[Any]) -> int:
    """Return the canonical 0-3 index for ``raw``; falls back to 0."""
    index, rule = resolve_answer_index(raw, options)
    if rule == RULE_FALLBACK:
        report_fallback(raw, options)
    return index
