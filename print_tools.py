from canvas_calendar_bridge.tools import TOOLS

for t in TOOLS:
    print(t.name, "required:", t.inputSchema.get("required") or [])
