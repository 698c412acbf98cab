from canvas_calendar_bridge.config import ENV_PATH, load_settings

print("ENV exists:", ENV_PATH.exists(), "path:", ENV_PATH)

settings = load_settings()
print("canvas base_ok:", bool(settings.canvas.base_url), "token_len:", len(settings.canvas.api_token))
print("canvas timeout:", settings.canvas.timeout)
print("google client_ok:", settings.google.is_configured,
      "refresh_token_len:", len(settings.google.refresh_token))
print("redirect_uri:", settings.google.redirect_uri)
print("missing:", settings.missing() or "none")
