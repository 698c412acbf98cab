"""Canvas LMS client.

Every call re-fetches from Canvas; nothing is cached between tool calls.
"""

import logging
from typing import Any

import requests

from .errors import (
    CanvasApiError,
    CanvasCourseFetchError,
    CanvasRequestError,
    CanvasTimeoutError,
    ConfigurationError,
)
from .models import NormalizedItem
from .normalizer import drop_reason, extract, normalize

_logger = logging.getLogger(__name__)

PER_PAGE = 100


class CanvasClient:
    def __init__(
        self,
        base_url: str,
        api_token: str,
        timeout: float = 30.0,
        session: requests.Session | None = None,
        logger: logging.Logger | None = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.api_token = api_token or ""
        self.timeout = timeout
        self.session = session or requests.Session()
        self.log = logger or _logger

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _get_page(self, url: str, params: dict | None) -> requests.Response:
        self.log.debug("GET %s params=%s timeout=%ss", url, params, self.timeout)
        try:
            r = self.session.get(
                url,
                headers={
                    "Authorization": f"Bearer {self.api_token}",
                    "Content-Type": "application/json",
                },
                params=params,
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            self.log.warning("Canvas request timed out after %ss: %s", self.timeout, url)
            raise CanvasTimeoutError(url, self.timeout) from e
        except requests.RequestException as e:
            raise CanvasRequestError(f"Canvas request failed for {url}: {e}") from e

        if not r.ok:
            self.log.warning("Canvas returned %s for %s", r.status_code, url)
            raise CanvasApiError(r.status_code, r.text, url=url)
        return r

    def _get(self, path: str, params: dict | None = None) -> Any:
        """GET ``/api/v1/<path>``, following Canvas ``Link: rel="next"`` pages."""
        if not self.base_url or not self.api_token:
            raise ConfigurationError(
                "Canvas not configured. Set CANVAS_BASE_URL and CANVAS_API_TOKEN in .env"
            )

        url = f"{self.base_url}/api/v1/{path.lstrip('/')}"
        r = self._get_page(url, params or {})
        data = r.json()
        if not isinstance(data, list):
            return data

        # "next" links already carry the query string
        next_link = (r.links or {}).get("next")
        while next_link:
            r = self._get_page(next_link["url"], None)
            data.extend(r.json())
            next_link = (r.links or {}).get("next")
        return data

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def list_courses(self) -> list[dict]:
        """Active-enrollment courses, minus the ones Canvas has date-locked."""
        courses = self._get("courses", {"enrollment_state": "active", "per_page": PER_PAGE})
        open_courses = []
        for course in courses:
            if course.get("access_restricted_by_date", False):
                self.log.info(
                    "Skipping course %s (%s): access restricted by date",
                    course.get("name", "Unknown"),
                    course.get("id"),
                )
                continue
            open_courses.append(course)
        return open_courses

    def list_course_assignments(self, course_id: int) -> list[dict]:
        return self._get(f"courses/{course_id}/assignments", {"per_page": PER_PAGE})

    def list_calendar_events(
        self,
        start_date: str | None = None,
        end_date: str | None = None,
        context_codes: list[str] | None = None,
    ) -> list[dict]:
        params: dict[str, Any] = {
            "context_codes[]": context_codes or ["user_self"],
            "per_page": PER_PAGE,
        }
        if start_date:
            params["start_date"] = start_date
        if end_date:
            params["end_date"] = end_date
        return self._get("calendar_events", params)

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    def list_all_assignments(self) -> list[dict]:
        """
        Raw assignments across all active courses, each stamped with
        'course_id' and 'course_name'.

        One failing course aborts the whole call: a partial list would look
        like a complete one to the caller.
        """
        courses = self.list_courses()
        self.log.info("Found %d active course(s)", len(courses))

        out: list[dict] = []
        for course in courses:
            cid = course.get("id")
            cname = course.get("name") or f"Course {cid}"
            try:
                assignments = self.list_course_assignments(cid)
            except Exception as e:
                self.log.error("Fetching assignments for %s (%s) failed: %s", cname, cid, e)
                raise CanvasCourseFetchError(cname, e) from e

            self.log.debug("%d assignment(s) in %s", len(assignments), cname)
            for assignment in assignments:
                assignment["course_id"] = cid
                assignment["course_name"] = cname
                out.append(assignment)
        return out

    def fetch_assignments_with_drops(self) -> tuple[list[NormalizedItem], list[str]]:
        """Normalized published items with due dates, plus reasons for the ones normalize dropped."""
        raw_items = self.list_all_assignments()

        candidates = []
        for raw in raw_items:
            name = extract(raw, "title") or "Unknown"
            if raw.get("published") is not True:
                self.log.debug('Filtered out "%s": not published', name)
            elif extract(raw, "due_at") is None:
                self.log.debug('Filtered out "%s": no due date', name)
            else:
                candidates.append(raw)

        items: list[NormalizedItem] = []
        dropped: list[str] = []
        for raw in candidates:
            item = normalize(raw)
            if item is None:
                reason = drop_reason(raw) or f"{extract(raw, 'title') or 'Unknown'} (not normalizable)"
                self.log.info("Dropped %s", reason)
                dropped.append(reason)
                continue
            items.append(item)

        self.log.info(
            "Canvas: %d raw, %d published with due date, %d normalized",
            len(raw_items), len(candidates), len(items),
        )
        return items, dropped

    def fetch_assignments(self) -> list[NormalizedItem]:
        items, _ = self.fetch_assignments_with_drops()
        return items
