"""Turn raw Canvas records into NormalizedItem.

Canvas hands us two shapes: flat assignments from
``/courses/{id}/assignments`` and calendar-event wrappers whose interesting
fields sit one level down under ``assignment``. Each field below lists the
places it may live, tried in order.
"""

from typing import Any

from .models import ItemKind, NormalizedItem
from .timezones import parse_instant

FIELD_PATHS: dict[str, tuple[tuple[str, ...], ...]] = {
    "id": (("id",), ("assignment", "id")),
    "title": (("title",), ("name",), ("assignment", "name")),
    "due_at": (("due_at",), ("assignment", "due_at")),
    "points_possible": (("points_possible",), ("assignment", "points_possible")),
    "course_name": (("course_name",), ("context_name",)),
    "url": (("html_url",), ("assignment", "html_url")),
    "description": (("description",), ("assignment", "description")),
}

# Flat assignment records carry these even when Canvas sends no "type".
ASSIGNMENT_MARKERS = ("assignment_group_id", "submission_types")


def _present(value: Any) -> bool:
    return value is not None and value != ""


def _walk(raw: dict, path: tuple[str, ...]) -> Any:
    node: Any = raw
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def extract(raw: dict, field: str) -> Any:
    """First present value for ``field`` following FIELD_PATHS, else None."""
    for path in FIELD_PATHS[field]:
        value = _walk(raw, path)
        if _present(value):
            return value
    return None


def _layers(raw: dict) -> list[dict]:
    nested = raw.get("assignment")
    return [raw, nested] if isinstance(nested, dict) else [raw]


def _has_submission_type(raw: dict, wanted: str) -> bool:
    for layer in _layers(raw):
        types = layer.get("submission_types") or []
        if isinstance(types, str):
            types = [types]
        if wanted in types:
            return True
    return False


def classify(raw: dict) -> ItemKind:
    """quiz > discussion > assignment > event."""
    layers = _layers(raw)

    if any(_present(layer.get("quiz_id")) or layer.get("is_quiz_assignment") for layer in layers) \
            or _has_submission_type(raw, "online_quiz"):
        return ItemKind.QUIZ

    if any(_present(layer.get("discussion_topic")) for layer in layers) \
            or _has_submission_type(raw, "discussion_topic"):
        return ItemKind.DISCUSSION

    if isinstance(raw.get("assignment"), dict) or raw.get("type") == "assignment" \
            or any(marker in raw for marker in ASSIGNMENT_MARKERS):
        return ItemKind.ASSIGNMENT

    return ItemKind.EVENT


def drop_reason(raw: dict) -> str | None:
    """Why ``normalize`` would return None for ``raw``; None if it wouldn't."""
    title = extract(raw, "title")
    due_raw = extract(raw, "due_at")
    if due_raw is None:
        return f"{title or 'Unknown'} (no due date - checked due_at and assignment.due_at)"
    if parse_instant(due_raw) is None:
        return f"{title or 'Unknown'} (invalid due date: {due_raw})"
    if title is None:
        return "Unknown (no name)"
    return None


def normalize(raw: dict) -> NormalizedItem | None:
    title = extract(raw, "title")
    due_at = parse_instant(extract(raw, "due_at"))
    if title is None or due_at is None:
        return None

    return NormalizedItem(
        id=extract(raw, "id"),
        title=str(title),
        kind=classify(raw),
        due_at=due_at,
        points_possible=extract(raw, "points_possible"),
        course_name=extract(raw, "course_name"),
        url=extract(raw, "url"),
        description=extract(raw, "description"),
    )
