"""Question generation through the LLM oracle."""

from __future__ import annotations

import json
import random
import re
import time
from typing import Any, Dict, List, Sequence

import requests
from flask import current_app

from ..metrics import record_oracle_call
from .ai_client import get_ai_client

SUB_TOPICS = (
    "Time & Work (Efficiency)",
    "Time & Work (Wages)",
    "Pipes & Cisterns",
    "Speed (Relative Speed)",
    "Speed (Trains)",
    "Speed (Boats & Streams)",
    "Probability (Coins)",
    "Probability (Dice)",
    "Probability (Cards)",
    "Permutation (Words)",
    "Profit & Loss (Discounts)",
    "Ages (Ratios)",
    "Blood Relations (Family Tree)",
    "Syllogisms (Possibility)",
    "Percentages (Election)",
    "Simple Interest vs Compound Interest",
    "Mensuration (Area vs Volume)",
)
TOPICS_PER_REQUEST = 3

SYSTEM_PROMPT = "You are a helpful AI that outputs strict JSON."

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


class OracleError(RuntimeError):
    """The oracle could not produce a usable batch of questions."""


def _random_sub_topics(k: int = TOPICS_PER_REQUEST) -> List[str]:
    return random.sample(SUB_TOPICS, k=min(k, len(SUB_TOPICS)))


def _build_messages(difficulty: str, count: int, topics: Sequence[str]) -> list[dict[str, str]]:
    prompt = (
        f"You are an expert mathematics tutor. Generate {count} unique {difficulty} level "
        "aptitude questions.\n"
        f"Focus on these sub-topics: {', '.join(topics)}.\n\n"
        "STRICT RULES:\n"
        "1. Return ONLY valid JSON.\n"
        '2. "correct_answer" SHOULD be the integer index (0-3).\n'
        '3. "options" must be an array of 4 distinct strings.\n'
        '4. "explanation" must be detailed.\n\n'
        "JSON Output Format:\n"
        '{"questions": [{"question_text": "string", "options": ["A", "B", "C", "D"], '
        '"correct_answer": 0, "explanation": "string", "hint": "string", "category": "string"}]}'
    )
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]


def _strip_fences(text: str) -> str:
    cleaned = _FENCE_RE.sub("", text or "").strip()
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start != -1 and end > start:
        cleaned = cleaned[start : end + 1]
    return cleaned


def _extract_content(response: Any) -> str:
    try:
        content = response["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise OracleError(f"Oracle response missing message content: {exc}") from exc
    if not isinstance(content, str):
        raise OracleError("Oracle message content is not text")
    return content


def parse_batch(text: str, difficulty: str, count: int) -> List[Dict[str, Any]]:
    """Decode one oracle reply into at most ``count`` raw question records."""
    try:
        payload = json.loads(_strip_fences(text))
    except json.JSONDecodeError as exc:
        raise OracleError(f"Oracle returned invalid JSON: {exc}") from exc
    if not isinstance(payload, dict) or not isinstance(payload.get("questions"), list):
        raise OracleError("Oracle payload has no 'questions' list")

    records: List[Dict[str, Any]] = []
    for item in payload["questions"][: max(count, 0)]:
        record = dict(item) if isinstance(item, dict) else {"raw": item}
        record["difficulty"] = difficulty
        records.append(record)
    return records


def generate_candidates(
    difficulty: str,
    count: int,
    category_hints: Sequence[str] | None = None,
) -> List[Dict[str, Any]]:
    """Ask the oracle for ``count`` fresh questions of one difficulty.

    Records are returned unvalidated; the question bank decides which of
    them are usable. Any transport or structural failure raises
    :class:`OracleError` and yields nothing.
    """
    if count <= 0:
        return []
    app = current_app
    if not app.config.get("ORACLE_ENABLE", True):
        record_oracle_call(difficulty, "disabled")
        raise OracleError("Question oracle is disabled")

    topics = list(category_hints) if category_hints else _random_sub_topics()
    messages = _build_messages(difficulty, count, topics)
    started = time.perf_counter()
    try:
        client = get_ai_client()
        response = client.chat(
            messages,
            model=app.config.get("AI_GENERATOR_MODEL"),
            temperature=app.config.get("AI_GENERATOR_TEMPERATURE", 0.7),
        )
        records = parse_batch(_extract_content(response), difficulty, count)
    except OracleError:
        record_oracle_call(difficulty, "invalid", time.perf_counter() - started)
        raise
    except (requests.RequestException, RuntimeError, ValueError) as exc:
        record_oracle_call(difficulty, "error", time.perf_counter() - started)
        raise OracleError(f"Oracle request failed: {exc}") from exc

    record_oracle_call(difficulty, "ok", time.perf_counter() - started)
    app.logger.info(
        "Oracle produced %s/%s %s questions (topics: %s)",
        len(records),
        count,
        difficulty,
        ", ".join(topics),
    )
    return records
