"""
Pytest configuration and shared fixtures.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest
import requests

from canvas_calendar_bridge.models import ItemKind, NormalizedItem

NOW = datetime(2025, 11, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None, links=None):
        self.status_code = status_code
        self._payload = payload
        if text is None:
            text = "" if payload is None else json.dumps(payload)
        self.text = text
        self.content = text.encode("utf-8")
        self.links = links or {}

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


class FakeSession:
    """Stands in for requests.Session; answers by URL substring."""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.calls = []

    def _answer(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        for fragment, answer in self.routes.items():
            if fragment in url:
                if isinstance(answer, Exception):
                    raise answer
                if callable(answer):
                    return answer(method, url, **kwargs)
                return answer
        raise AssertionError(f"unexpected request {method} {url}")

    def get(self, url, **kwargs):
        return self._answer("GET", url, **kwargs)

    def request(self, method, url, **kwargs):
        return self._answer(method, url, **kwargs)


class FakeCanvas:
    def __init__(self, items=None, dropped=None, error=None):
        self.items = items or []
        self.dropped = dropped or []
        self.error = error
        self.calls = 0

    def fetch_assignments_with_drops(self):
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.items), list(self.dropped)

    def fetch_assignments(self):
        return self.fetch_assignments_with_drops()[0]


class FakeCalendar:
    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.created = []
        self.attempts = []

    def create_event(self, event):
        self.attempts.append(event)
        if event["summary"] in self.fail_on:
            raise requests.HTTPError("Google Calendar API error: 500 - boom")
        self.created.append(event)
        return {"id": f"evt{len(self.created)}", "htmlLink": "https://calendar.google.com/e"}


def make_item(title="Essay", days=3.0, kind=ItemKind.ASSIGNMENT, **overrides):
    fields = {
        "id": overrides.pop("id", 1),
        "title": title,
        "kind": kind,
        "due_at": NOW + timedelta(days=days),
        "points_possible": 10,
        "course_name": "Biology 101",
        "url": "https://canvas.example.edu/courses/1/assignments/1",
        "description": "Write it.",
    }
    fields.update(overrides)
    return NormalizedItem(**fields)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def flat_assignment():
    """Assignment as returned by /courses/{id}/assignments."""
    return {
        "id": 101,
        "name": "Lab Report 3",
        "description": "<p>Submit your lab report.</p>",
        "due_at": "2025-11-08T04:59:59Z",
        "points_possible": 25.0,
        "assignment_group_id": 7,
        "submission_types": ["online_upload"],
        "published": True,
        "html_url": "https://canvas.example.edu/courses/1/assignments/101",
    }


@pytest.fixture
def wrapped_quiz():
    """Calendar-event wrapper with the assignment nested one level down."""
    return {
        "id": "assignment_202",
        "title": "",
        "type": "assignment",
        "context_name": "Chemistry 210",
        "assignment": {
            "id": 202,
            "name": "Quiz 4",
            "due_at": "2025-11-12T15:00:00Z",
            "quiz_id": 55,
            "submission_types": ["online_quiz"],
            "points_possible": 5,
            "html_url": "https://canvas.example.edu/courses/2/quizzes/55",
        },
    }
