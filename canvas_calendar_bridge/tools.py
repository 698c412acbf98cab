"""MCP tool table and the handlers behind it.

Handlers return plain text. Any exception becomes a single
``Error: <message>`` result flagged as an error; nothing here exits the
process.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from mcp.types import Tool

from .canvas import CanvasClient
from .errors import ToolArgumentError
from .google_calendar import GoogleCalendarClient
from .models import ItemKind, NormalizedItem
from .sync import SyncOrchestrator
from .timezones import TARGET_ZONE_NAME, to_target_zone

logger = logging.getLogger(__name__)

DEFAULT_LIST_DAYS = 7
DEFAULT_LIST_MAX_RESULTS = 10
DEFAULT_SYNC_DAYS = 14
DESCRIPTION_PREVIEW = 100

TYPE_DISPLAY = {
    ItemKind.ASSIGNMENT: "📚 Assignment",
    ItemKind.QUIZ: "📝 Quiz",
    ItemKind.DISCUSSION: "💬 Discussion",
    ItemKind.EVENT: "📅 Event",
}


def _schema(properties: dict | None = None, required: list[str] | None = None) -> dict:
    return {"type": "object", "properties": properties or {}, "required": required or []}


TOOLS: list[Tool] = [
    # Google Calendar authentication
    Tool(
        name="get_google_auth_url",
        description="Get the Google OAuth authorization URL to authenticate Google Calendar access",
        inputSchema=_schema(),
    ),
    Tool(
        name="set_google_auth_code",
        description="Exchange the authorization code for access and refresh tokens",
        inputSchema=_schema(
            {"code": {"type": "string", "description": "The authorization code from Google OAuth callback"}},
            ["code"],
        ),
    ),
    # General calendar management
    Tool(
        name="create_calendar_event",
        description="Create a new event in Google Calendar (works for any type of event, not just Canvas-related)",
        inputSchema=_schema(
            {
                "title": {"type": "string", "description": "Event title/summary"},
                "description": {"type": "string", "description": "Event description (optional)"},
                "startTime": {"type": "string", "description": "Start time in ISO 8601 format (e.g., 2024-01-15T10:00:00)"},
                "endTime": {"type": "string", "description": "End time in ISO 8601 format (e.g., 2024-01-15T11:00:00)"},
                "timezone": {"type": "string", "description": f"Timezone (default: {TARGET_ZONE_NAME})"},
            },
            ["title", "startTime", "endTime"],
        ),
    ),
    Tool(
        name="list_calendar_events",
        description="List upcoming events from Google Calendar",
        inputSchema=_schema(
            {
                "daysAhead": {"type": "number", "description": f"Number of days ahead to retrieve events (default: {DEFAULT_LIST_DAYS})"},
                "maxResults": {"type": "number", "description": f"Maximum number of events to return (default: {DEFAULT_LIST_MAX_RESULTS})"},
            }
        ),
    ),
    Tool(
        name="update_calendar_event",
        description="Update an existing calendar event",
        inputSchema=_schema(
            {
                "eventId": {"type": "string", "description": "The ID of the event to update"},
                "title": {"type": "string", "description": "New event title (optional)"},
                "description": {"type": "string", "description": "New event description (optional)"},
                "startTime": {"type": "string", "description": "New start time in ISO 8601 format (optional)"},
                "endTime": {"type": "string", "description": "New end time in ISO 8601 format (optional)"},
                "timezone": {"type": "string", "description": "Timezone (optional)"},
            },
            ["eventId"],
        ),
    ),
    Tool(
        name="delete_calendar_event",
        description="Delete a calendar event",
        inputSchema=_schema(
            {"eventId": {"type": "string", "description": "The ID of the event to delete"}},
            ["eventId"],
        ),
    ),
    # Canvas
    Tool(
        name="get_canvas_assignments",
        description="Get upcoming assignments from Canvas LMS",
        inputSchema=_schema(),
    ),
    Tool(
        name="sync_to_calendar",
        description="Sync Canvas assignments to Google Calendar",
        inputSchema=_schema(
            {"daysAhead": {"type": "number", "description": f"Number of days ahead to sync (default: {DEFAULT_SYNC_DAYS})"}}
        ),
    ),
]


@dataclass(frozen=True)
class ToolResult:
    text: str
    is_error: bool = False


# ============================================================================
# Argument helpers
# ============================================================================

def _require(arguments: dict, *names: str) -> None:
    missing = [n for n in names if not arguments.get(n)]
    if len(missing) == 1:
        raise ToolArgumentError(f"{missing[0]} is required")
    if missing:
        raise ToolArgumentError(f"{', '.join(missing)} are required")


def _positive_int(arguments: dict, name: str, default: int) -> int:
    value = arguments.get(name)
    if not value:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value != int(value) or value < 0:
        raise ToolArgumentError(f"{name} must be a positive whole number, got {value!r}")
    return int(value)


def _utc_iso(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


def format_assignment(item: NormalizedItem) -> dict[str, Any] | None:
    due = to_target_zone(item.due_at)
    if due is None:
        return None
    if item.description:
        description = item.description[:DESCRIPTION_PREVIEW] + "..."
    else:
        description = "No description"
    return {
        "type": TYPE_DISPLAY.get(item.kind, "📄 Unknown"),
        "name": item.title,
        "due_date_est": due.display,
        "points": item.points_possible if item.points_possible is not None else "N/A",
        "course": item.course_name or "N/A",
        "url": item.url,
        "description": description,
    }


# ============================================================================
# Handlers
# ============================================================================

class BridgeTools:
    def __init__(
        self,
        canvas: CanvasClient,
        calendar: GoogleCalendarClient,
        orchestrator: SyncOrchestrator | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.canvas = canvas
        self.calendar = calendar
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.orchestrator = orchestrator or SyncOrchestrator(canvas, calendar, clock=self.clock)
        self.handlers: dict[str, Callable[[dict], str]] = {
            "get_google_auth_url": self.get_google_auth_url,
            "set_google_auth_code": self.set_google_auth_code,
            "create_calendar_event": self.create_calendar_event,
            "list_calendar_events": self.list_calendar_events,
            "update_calendar_event": self.update_calendar_event,
            "delete_calendar_event": self.delete_calendar_event,
            "get_canvas_assignments": self.get_canvas_assignments,
            "sync_to_calendar": self.sync_to_calendar,
        }

    def call(self, name: str, arguments: dict | None) -> ToolResult:
        """Run one tool; errors come back as a flagged text result."""
        try:
            handler = self.handlers.get(name)
            if handler is None:
                raise ToolArgumentError(f"Unknown tool: {name}")
            return ToolResult(handler(arguments or {}))
        except Exception as e:
            logger.error("Tool %s failed: %s", name, e)
            return ToolResult(f"Error: {e}", is_error=True)

    # Google Calendar authentication ------------------------------------------

    def get_google_auth_url(self, arguments: dict) -> str:
        auth_url = self.calendar.get_auth_url()
        return (
            "Please visit this URL to authorize Google Calendar access:\n\n"
            f"{auth_url}\n\n"
            "After authorizing, you'll be redirected to a URL with a 'code' parameter. "
            "Copy that code and use the 'set_google_auth_code' tool to complete the authentication."
        )

    def set_google_auth_code(self, arguments: dict) -> str:
        _require(arguments, "code")
        tokens = self.calendar.exchange_code(arguments["code"])
        refresh_token = tokens.get("refresh_token")
        if not refresh_token:
            return (
                "Authentication successful, but Google did not return a refresh token.\n\n"
                "Revoke the app's access in your Google account and authorize again to get one."
            )
        return (
            "Authentication successful!\n\n"
            "IMPORTANT: Save this refresh token to your configuration:\n\n"
            f"Refresh Token: {refresh_token}\n\n"
            f'Add it to your .env (or the server\'s env section) as:\nGOOGLE_REFRESH_TOKEN="{refresh_token}"\n\n'
            "Then restart the server for the change to take effect."
        )

    # General calendar management ---------------------------------------------

    def create_calendar_event(self, arguments: dict) -> str:
        _require(arguments, "title", "startTime", "endTime")
        title = arguments["title"]
        tz_name = arguments.get("timezone") or TARGET_ZONE_NAME
        event = {
            "summary": title,
            "description": arguments.get("description") or "",
            "start": {"dateTime": arguments["startTime"], "timeZone": tz_name},
            "end": {"dateTime": arguments["endTime"], "timeZone": tz_name},
        }
        created = self.calendar.create_event(event)
        return (
            "Calendar event created successfully!\n\n"
            f"Title: {title}\n"
            f"Start: {arguments['startTime']}\n"
            f"End: {arguments['endTime']}\n"
            f"Event ID: {created.get('id')}\n"
            f"Link: {created.get('htmlLink')}"
        )

    def list_calendar_events(self, arguments: dict) -> str:
        days_ahead = _positive_int(arguments, "daysAhead", DEFAULT_LIST_DAYS)
        max_results = _positive_int(arguments, "maxResults", DEFAULT_LIST_MAX_RESULTS)

        now = self.clock()
        events = self.calendar.list_events(
            _utc_iso(now), _utc_iso(now + timedelta(days=days_ahead)), max_results
        )
        items = events.get("items") or []
        if not items:
            return f"No upcoming events found in the next {days_ahead} days."

        lines = []
        for event in items:
            start = event.get("start", {})
            end = event.get("end", {})
            entry = (
                f"• {event.get('summary') or 'Untitled'}\n"
                f"  Start: {start.get('dateTime') or start.get('date')}\n"
                f"  End: {end.get('dateTime') or end.get('date')}\n"
                f"  ID: {event.get('id')}"
            )
            if event.get("htmlLink"):
                entry += f"\n  Link: {event['htmlLink']}"
            lines.append(entry)

        return (
            f"Found {len(items)} upcoming event(s) in the next {days_ahead} days:\n\n"
            + "\n\n".join(lines)
        )

    def update_calendar_event(self, arguments: dict) -> str:
        _require(arguments, "eventId")
        event_id = arguments["eventId"]
        tz_name = arguments.get("timezone") or TARGET_ZONE_NAME

        updates: dict[str, Any] = {}
        if arguments.get("title"):
            updates["summary"] = arguments["title"]
        if arguments.get("description") is not None:
            updates["description"] = arguments["description"]
        if arguments.get("startTime"):
            updates["start"] = {"dateTime": arguments["startTime"], "timeZone": tz_name}
        if arguments.get("endTime"):
            updates["end"] = {"dateTime": arguments["endTime"], "timeZone": tz_name}

        updated = self.calendar.update_event(event_id, updates)
        return (
            "Event updated successfully!\n\n"
            f"Event ID: {event_id}\n"
            f"Title: {updated.get('summary')}\n"
            f"Link: {updated.get('htmlLink')}"
        )

    def delete_calendar_event(self, arguments: dict) -> str:
        _require(arguments, "eventId")
        self.calendar.delete_event(arguments["eventId"])
        return f"Event deleted successfully!\n\nEvent ID: {arguments['eventId']}"

    # Canvas -----------------------------------------------------------------

    def get_canvas_assignments(self, arguments: dict) -> str:
        items = self.canvas.fetch_assignments()
        if not items:
            return "No upcoming assignments or quizzes found in Canvas."

        formatted = [f for f in (format_assignment(item) for item in items) if f is not None]
        if not formatted:
            return "Found assignments/quizzes but none have valid due dates."

        return (
            f"Found {len(formatted)} upcoming item(s) with due dates (times shown in EST):\n\n"
            + json.dumps(formatted, indent=2, ensure_ascii=False)
        )

    def sync_to_calendar(self, arguments: dict) -> str:
        days_ahead = _positive_int(arguments, "daysAhead", DEFAULT_SYNC_DAYS)
        report = self.orchestrator.sync(days_ahead)

        text = f"Successfully synced {len(report.synced)} item(s) to Google Calendar (EST timezone):\n\n"
        if report.synced:
            text += "\n".join(report.synced)
        if report.skipped:
            text += f"\n\nSkipped {len(report.skipped)} item(s):\n" + "\n".join(report.skipped)
        return text
