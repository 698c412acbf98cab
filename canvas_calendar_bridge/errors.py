"""Exception types raised by the Canvas and Google Calendar gateways."""


class BridgeError(Exception):
    """Base class for every error this package raises on purpose."""


class ConfigurationError(BridgeError):
    pass


class ToolArgumentError(BridgeError):
    """A tool was invoked without a required argument, or with a bad one."""


# ============================================================================
# Canvas
# ============================================================================

class CanvasError(BridgeError):
    pass


class CanvasApiError(CanvasError):
    def __init__(self, status: int, body: str, url: str = ""):
        self.status = status
        self.body = body
        self.url = url
        super().__init__(f"Canvas API error: {status} - {body}")


class CanvasTimeoutError(CanvasError):
    def __init__(self, url: str, timeout: float):
        self.url = url
        self.timeout = timeout
        super().__init__(f"Canvas API timeout after {int(timeout * 1000)}ms for {url}")


class CanvasRequestError(CanvasError):
    pass


class CanvasCourseFetchError(CanvasError):
    """Fetching one course's assignments failed, which aborts the whole fetch."""

    def __init__(self, course_name: str, cause: Exception):
        self.course_name = course_name
        self.cause = cause
        super().__init__(f'Failed to fetch assignments for course "{course_name}": {cause}')


# ============================================================================
# Google Calendar
# ============================================================================

class CalendarError(BridgeError):
    pass


class CalendarApiError(CalendarError):
    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"Google Calendar API error: {status} - {body}")


class CalendarRequestError(CalendarError):
    pass


class CalendarAuthError(CalendarError):
    pass
