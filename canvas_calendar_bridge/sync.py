"""Push upcoming Canvas items into Google Calendar.

There is no record of earlier runs: syncing twice over the same window
creates every event twice.
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from .errors import ToolArgumentError
from .models import ConvertedTime, ItemKind, NormalizedItem, SyncReport
from .timezones import TARGET_ZONE_NAME, to_target_zone

_logger = logging.getLogger(__name__)

ONE_DAY_SECONDS = 24 * 60 * 60
EVENT_LENGTH = timedelta(hours=1)
REMINDER_MINUTES = (24 * 60, 60)

TYPE_INFO: dict[ItemKind, tuple[str, str]] = {
    ItemKind.ASSIGNMENT: ("📚", "Canvas Assignment"),
    ItemKind.QUIZ: ("📝", "Canvas Quiz"),
    ItemKind.DISCUSSION: ("💬", "Canvas Discussion"),
    ItemKind.EVENT: ("📅", "Calendar Event"),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def days_until(due_at: datetime, now: datetime) -> int:
    """Whole days from ``now`` to ``due_at``, rounded up."""
    return math.ceil((due_at - now).total_seconds() / ONE_DAY_SECONDS)


def in_window(days_diff: int, days_ahead: int) -> bool:
    # Due today (days_diff == 0) or earlier is out.
    return 0 < days_diff <= days_ahead


def build_event_payload(item: NormalizedItem, start: ConvertedTime, end: ConvertedTime) -> dict[str, Any]:
    emoji, label = TYPE_INFO.get(item.kind, TYPE_INFO[ItemKind.EVENT])
    points = item.points_possible if item.points_possible is not None else "N/A"
    description = (
        f"{label}\n\n"
        f"Due: {start.display} EST\n"
        f"Points: {points}\n"
        f"Course: {item.course_name or 'N/A'}\n\n"
        f"Link: {item.url or ''}"
    )
    return {
        "summary": f"{emoji} {item.title}",
        "description": description,
        "start": {"dateTime": start.local_datetime, "timeZone": TARGET_ZONE_NAME},
        "end": {"dateTime": end.local_datetime, "timeZone": TARGET_ZONE_NAME},
        "reminders": {
            "useDefault": False,
            "overrides": [{"method": "popup", "minutes": m} for m in REMINDER_MINUTES],
        },
    }


class SyncOrchestrator:
    def __init__(
        self,
        canvas,
        calendar,
        clock: Callable[[], datetime] | None = None,
        logger: logging.Logger | None = None,
    ):
        self.canvas = canvas
        self.calendar = calendar
        self.clock = clock or _utcnow
        self.log = logger or _logger

    def sync(self, days_ahead: int) -> SyncReport:
        if isinstance(days_ahead, bool) or not isinstance(days_ahead, int) or days_ahead <= 0:
            raise ToolArgumentError(f"daysAhead must be a positive integer, got {days_ahead!r}")

        # Canvas faults propagate from here; nothing has been created yet.
        items, dropped = self.canvas.fetch_assignments_with_drops()
        report = SyncReport(skipped=list(dropped))
        now = self.clock()
        self.log.info("Syncing %d item(s), window %d day(s), now=%s", len(items), days_ahead, now.isoformat())

        for item in items:
            try:
                self._sync_item(item, days_ahead, now, report)
            except Exception as e:
                self.log.warning("Sync failed for %s: %s", item.title, e)
                report.skipped.append(f"{item.title} (error: {e})")

        self.log.info("Synced %d, skipped %d", len(report.synced), len(report.skipped))
        return report

    def _sync_item(self, item: NormalizedItem, days_ahead: int, now: datetime, report: SyncReport) -> None:
        days_diff = days_until(item.due_at, now)
        if not in_window(days_diff, days_ahead):
            self.log.debug("%s outside window (%d days away)", item.title, days_diff)
            report.skipped.append(
                f"{item.title} (outside {days_ahead} day window - {days_diff} days away)"
            )
            return

        start = to_target_zone(item.due_at)
        if start is None:
            report.skipped.append(f"{item.title} (date conversion failed)")
            return

        end = to_target_zone(item.due_at + EVENT_LENGTH)
        if end is None:
            report.skipped.append(f"{item.title} (end date conversion failed)")
            return

        payload = build_event_payload(item, start, end)
        self.calendar.create_event(payload)

        _emoji, label = TYPE_INFO.get(item.kind, TYPE_INFO[ItemKind.EVENT])
        self.log.debug("Created event for %s", item.title)
        report.synced.append(f"{item.title} ({label}) - Due: {start.display}")
