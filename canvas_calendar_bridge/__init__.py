"""Canvas LMS assignments -> Google Calendar, as MCP tools."""

__version__ = "1.0.0"
