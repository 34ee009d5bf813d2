"""
Result Normalizer - turn raw provider text into an ExtractionResult.

Accepts strict JSON, markdown-fenced JSON, the legacy bare goals array, or
JSON buried in prose. Anything else raises ParseFailure so each caller can
degrade in its own way.
"""

import json
import logging
import re
import uuid
from datetime import datetime
from typing import Any, Callable, Optional

from aura.core.exceptions import ParseFailure
from aura.schemas.goal import ExtractionResult, Goal, GoalCategory, Priority, Step

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]

CODE_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?")
SENTINEL_TITLES = {"unresolved intent"}
TITLE_KEYS = ("goal", "title", "task")
PRIORITY_VALUES = {p.value for p in Priority}


def new_id() -> str:
    return uuid.uuid4().hex


def strip_code_fences(raw: str) -> str:
    return CODE_FENCE_PATTERN.sub("", raw).strip()


def extract_json_object(text: str) -> Optional[str]:
    """
    Return the {...} substring opened by the first brace, ignoring braces inside strings.

    A truncated outer object yields None rather than one of its inner objects.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]
    return None


def parse_payload(raw: str) -> Any:
    """Decode a provider body into a dict or list, or raise ParseFailure."""
    if not raw or not raw.strip():
        raise ParseFailure("Empty response body", raw=raw or "")

    text = strip_code_fences(raw)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    candidate = extract_json_object(text)
    if candidate is not None:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            pass

    raise ParseFailure("Response is not valid JSON", raw=raw)


def _clean_text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _coerce_priority(value: Any) -> Priority:
    lowered = _clean_text(value).lower()
    return Priority(lowered) if lowered in PRIORITY_VALUES else Priority.MEDIUM


def _coerce_completed(value: Any) -> bool:
    return value if isinstance(value, bool) else False


def _valid_iso(value: Any) -> Optional[str]:
    text = _clean_text(value)
    if not text:
        return None
    try:
        datetime.fromisoformat(text)
    except ValueError:
        return None
    return text


def _claim_id(value: Any, seen: set[str], id_factory: IdFactory) -> str:
    """Keep an echoed id unless it is blank or already used in this extraction."""
    candidate = _clean_text(value)
    while not candidate or candidate in seen:
        candidate = id_factory()
    seen.add(candidate)
    return candidate


def normalize_step(entry: Any, id_factory: IdFactory = new_id, seen: Optional[set[str]] = None) -> Optional[Step]:
    if not isinstance(entry, dict):
        return None
    text = _clean_text(entry.get("text"))
    if not text:
        return None
    return Step(
        id=_claim_id(entry.get("id"), seen if seen is not None else set(), id_factory),
        text=text,
        completed=_coerce_completed(entry.get("completed")),
    )


def normalize_goal(
    entry: Any,
    now: datetime,
    id_factory: IdFactory = new_id,
    category: Optional[GoalCategory] = None,
    seen: Optional[set[str]] = None,
) -> Optional[Goal]:
    """Build a Goal from one provider record, or None when it has no usable title.

    `seen` holds the ids already handed out in the same extraction.
    """
    if not isinstance(entry, dict):
        return None

    title = ""
    for key in TITLE_KEYS:
        title = _clean_text(entry.get(key))
        if title:
            break
    if not title or title.lower() in SENTINEL_TITLES:
        return None

    if seen is None:
        seen = set()
    goal_id = _claim_id(entry.get("id"), seen, id_factory)
    raw_steps = entry.get("steps")
    steps = []
    if isinstance(raw_steps, list):
        for raw_step in raw_steps:
            step = normalize_step(raw_step, id_factory, seen)
            if step is not None:
                steps.append(step)

    description = _clean_text(entry.get("description")) or None
    echoed_category = _clean_text(entry.get("category"))
    if category is None and echoed_category in {c.value for c in GoalCategory}:
        category = GoalCategory(echoed_category)

    return Goal(
        id=goal_id,
        title=title,
        description=description,
        priority=_coerce_priority(entry.get("priority")),
        completed=_coerce_completed(entry.get("completed")),
        due_date=_valid_iso(entry.get("dueDate", entry.get("due_date"))),
        steps=steps,
        created_at=_valid_iso(entry.get("createdAt", entry.get("created_at"))) or now.isoformat(),
        category=category,
    )


def normalize_extraction(
    raw: str,
    *,
    now: datetime,
    id_factory: IdFactory = new_id,
    category: Optional[GoalCategory] = None,
) -> ExtractionResult:
    """
    Parse and validate a provider body into an ExtractionResult.

    Args:
        raw: Provider text
        now: Timestamp given to goals that arrive without one
        id_factory: Source of fresh goal and step identifiers
        category: Category stamped on every goal, if the caller chose one

    Returns:
        ExtractionResult with only goals that carry a usable title

    Raises:
        ParseFailure: body is not JSON, or its shape is not an extraction payload
    """
    payload = parse_payload(raw)

    if isinstance(payload, list):
        # Legacy shape: the goals array on its own
        entries, transcription = payload, ""
    elif isinstance(payload, dict):
        if "goals" not in payload:
            raise ParseFailure("Response has no 'goals' field", raw=raw)
        entries = payload["goals"]
        if entries is None:
            entries = []
        if not isinstance(entries, list):
            raise ParseFailure("'goals' is not an array", raw=raw)
        transcription = payload.get("transcription")
        transcription = transcription.strip() if isinstance(transcription, str) else ""
    else:
        raise ParseFailure(f"Unexpected top-level JSON type: {type(payload).__name__}", raw=raw)

    goals = []
    seen: set[str] = set()
    for entry in entries:
        goal = normalize_goal(entry, now, id_factory, category, seen)
        if goal is not None:
            goals.append(goal)

    dropped = len(entries) - len(goals)
    if dropped:
        logger.info(f"[EXTRACT] Dropped {dropped} goal record(s) without a usable title")

    return ExtractionResult(goals=goals, transcription=transcription)
