import json

from canvas_calendar_bridge.errors import CanvasCourseFetchError
from canvas_calendar_bridge.models import ItemKind
from canvas_calendar_bridge.server import SERVER_NAME, create_server
from canvas_calendar_bridge.tools import TOOLS, BridgeTools

from conftest import NOW, FakeCalendar, FakeCanvas, make_item


class RecordingCalendar(FakeCalendar):
    def __init__(self, listed=None):
        super().__init__()
        self.listed = listed or {"items": []}
        self.list_args = None
        self.updates = []
        self.deleted = []
        self.codes = []

    def get_auth_url(self):
        return "https://accounts.google.com/o/oauth2/v2/auth?x=1"

    def exchange_code(self, code):
        self.codes.append(code)
        return {"access_token": "a", "refresh_token": "long-lived"}

    def list_events(self, time_min, time_max, max_results=None):
        self.list_args = (time_min, time_max, max_results)
        return self.listed

    def update_event(self, event_id, updates):
        self.updates.append((event_id, updates))
        return {"id": event_id, "summary": updates.get("summary", "Old"), "htmlLink": "https://l"}

    def delete_event(self, event_id):
        self.deleted.append(event_id)
        return {"success": True}


def _tools(items=None, calendar=None, canvas=None):
    calendar = calendar or RecordingCalendar()
    canvas = canvas or FakeCanvas(items or [])
    return BridgeTools(canvas, calendar, clock=lambda: NOW), calendar


def test_tool_table_is_exactly_the_public_surface():
    assert [t.name for t in TOOLS] == [
        "get_google_auth_url",
        "set_google_auth_code",
        "create_calendar_event",
        "list_calendar_events",
        "update_calendar_event",
        "delete_calendar_event",
        "get_canvas_assignments",
        "sync_to_calendar",
    ]
    required = {t.name: t.inputSchema["required"] for t in TOOLS}
    assert required["create_calendar_event"] == ["title", "startTime", "endTime"]
    assert required["update_calendar_event"] == ["eventId"]


def test_unknown_tool_is_an_error_result():
    tools, _ = _tools()
    result = tools.call("nope", {})
    assert result.is_error
    assert result.text == "Error: Unknown tool: nope"


def test_auth_url_and_code():
    tools, calendar = _tools()
    assert "https://accounts.google.com/" in tools.call("get_google_auth_url", {}).text

    result = tools.call("set_google_auth_code", {"code": "4/abc"})
    assert not result.is_error
    assert "Refresh Token: long-lived" in result.text
    assert calendar.codes == ["4/abc"]


def test_missing_code_fails_before_network():
    tools, calendar = _tools()
    result = tools.call("set_google_auth_code", {})
    assert result.is_error
    assert result.text == "Error: code is required"
    assert calendar.codes == []


def test_create_event_validation_names_fields():
    tools, calendar = _tools()
    result = tools.call("create_calendar_event", {"title": "Study"})
    assert result.is_error
    assert result.text == "Error: startTime, endTime are required"
    assert calendar.attempts == []


def test_create_event_defaults_timezone():
    tools, calendar = _tools()
    result = tools.call("create_calendar_event", {
        "title": "Study", "startTime": "2025-11-03T10:00:00", "endTime": "2025-11-03T11:00:00",
    })
    assert "Event ID: evt1" in result.text
    event = calendar.created[0]
    assert event["start"] == {"dateTime": "2025-11-03T10:00:00", "timeZone": "America/New_York"}
    assert event["description"] == ""


def test_list_events_window_and_rendering():
    calendar = RecordingCalendar(listed={"items": [
        {"id": "e1", "summary": "Lab", "start": {"dateTime": "2025-11-02T09:00:00-05:00"},
         "end": {"dateTime": "2025-11-02T10:00:00-05:00"}, "htmlLink": "https://l/e1"},
        {"id": "e2", "start": {"date": "2025-11-05"}, "end": {"date": "2025-11-06"}},
    ]})
    tools, _ = _tools(calendar=calendar)
    text = tools.call("list_calendar_events", {"daysAhead": 3}).text

    assert calendar.list_args == ("2025-11-01T12:00:00Z", "2025-11-04T12:00:00Z", 10)
    assert text.startswith("Found 2 upcoming event(s) in the next 3 days:")
    assert "• Lab\n  Start: 2025-11-02T09:00:00-05:00" in text
    assert "Link: https://l/e1" in text
    assert "• Untitled\n  Start: 2025-11-05" in text


def test_list_events_empty():
    tools, _ = _tools()
    assert tools.call("list_calendar_events", {}).text == "No upcoming events found in the next 7 days."


def test_update_only_sends_given_fields():
    tools, calendar = _tools()
    tools.call("update_calendar_event", {"eventId": "e1", "title": "New", "startTime": "2025-11-03T10:00:00"})
    assert calendar.updates == [("e1", {
        "summary": "New",
        "start": {"dateTime": "2025-11-03T10:00:00", "timeZone": "America/New_York"},
    })]


def test_delete():
    tools, calendar = _tools()
    assert tools.call("delete_calendar_event", {"eventId": "e9"}).text.endswith("Event ID: e9")
    assert calendar.deleted == ["e9"]
    assert tools.call("delete_calendar_event", {}).text == "Error: eventId is required"


def test_get_canvas_assignments_formats_items():
    long_text = "x" * 150
    items = [
        make_item("Quiz 4", days=6.5, kind=ItemKind.QUIZ, points_possible=None, description=long_text),
        make_item("Reading", days=2, course_name=None, description=None),
    ]
    tools, _ = _tools(items)
    text = tools.call("get_canvas_assignments", {}).text

    header, body = text.split("\n\n", 1)
    assert header == "Found 2 upcoming item(s) with due dates (times shown in EST):"
    quiz, reading = json.loads(body)
    assert quiz["type"] == "📝 Quiz"
    assert quiz["due_date_est"] == "November 7, 2025 at 7:00 PM"
    assert quiz["points"] == "N/A"
    assert quiz["description"] == "x" * 100 + "..."
    assert reading["type"] == "📚 Assignment"
    assert reading["course"] == "N/A"
    assert reading["description"] == "No description"


def test_zero_points_are_shown_as_zero():
    tools, _ = _tools([make_item("Practice Quiz", kind=ItemKind.QUIZ, points_possible=0)])
    (item,) = json.loads(tools.call("get_canvas_assignments", {}).text.split("\n\n", 1)[1])
    assert item["points"] == 0


def test_get_canvas_assignments_empty():
    tools, _ = _tools([])
    assert tools.call("get_canvas_assignments", {}).text == "No upcoming assignments or quizzes found in Canvas."


def test_sync_summary():
    items = [make_item("Essay", days=2), make_item("Far", days=30)]
    tools, calendar = _tools(items)
    text = tools.call("sync_to_calendar", {}).text
    assert text.startswith("Successfully synced 1 item(s) to Google Calendar (EST timezone):\n\nEssay (Canvas Assignment)")
    assert "Skipped 1 item(s):\nFar (outside 14 day window - 30 days away)" in text
    assert len(calendar.created) == 1


def test_sync_canvas_failure_is_an_error_result():
    canvas = FakeCanvas(error=CanvasCourseFetchError("Chem", RuntimeError("boom")))
    tools, calendar = _tools(canvas=canvas)
    result = tools.call("sync_to_calendar", {"daysAhead": 7})
    assert result.is_error
    assert result.text == 'Error: Failed to fetch assignments for course "Chem": boom'
    assert calendar.attempts == []


def test_bad_days_ahead():
    tools, _ = _tools()
    assert tools.call("sync_to_calendar", {"daysAhead": -2}).is_error
    assert tools.call("sync_to_calendar", {"daysAhead": 2.5}).is_error


def test_create_server():
    tools, _ = _tools()
    server = create_server(tools)
    assert server.name == SERVER_NAME
