import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# .env at the repository root (only present for local dev)
ENV_PATH = Path(__file__).resolve().parent.parent / ".env"

DEFAULT_REDIRECT_URI = "http://localhost:3000/oauth2callback"
DEFAULT_TIMEOUT_SECONDS = 30.0


def load_env(path: Path = ENV_PATH) -> bool:
    """Load ``path`` into os.environ. Values in the file win over the shell."""
    if path.exists():
        return load_dotenv(dotenv_path=path, override=True)
    return False


def _float_from_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class CanvasSettings:
    base_url: str
    api_token: str
    timeout: float

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.api_token)


@dataclass(frozen=True)
class GoogleSettings:
    client_id: str
    client_secret: str
    refresh_token: str
    redirect_uri: str

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


@dataclass(frozen=True)
class Settings:
    canvas: CanvasSettings
    google: GoogleSettings
    log_level: str

    def missing(self) -> list[str]:
        """Names of required variables that are unset."""
        missing = []
        if not self.canvas.base_url:
            missing.append("CANVAS_BASE_URL")
        if not self.canvas.api_token:
            missing.append("CANVAS_API_TOKEN")
        if not self.google.client_id:
            missing.append("GOOGLE_OAUTH_CLIENT_ID")
        if not self.google.client_secret:
            missing.append("GOOGLE_OAUTH_CLIENT_SECRET")
        return missing


def load_settings(env_path: Path | None = ENV_PATH) -> Settings:
    if env_path is not None:
        load_env(env_path)

    canvas = CanvasSettings(
        base_url=(os.getenv("CANVAS_BASE_URL") or "").rstrip("/"),
        api_token=os.getenv("CANVAS_API_TOKEN") or "",
        timeout=_float_from_env("CANVAS_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
    )
    google = GoogleSettings(
        client_id=os.getenv("GOOGLE_OAUTH_CLIENT_ID") or "",
        client_secret=os.getenv("GOOGLE_OAUTH_CLIENT_SECRET") or "",
        refresh_token=os.getenv("GOOGLE_REFRESH_TOKEN") or "",
        redirect_uri=os.getenv("GOOGLE_REDIRECT_URI") or DEFAULT_REDIRECT_URI,
    )
    return Settings(
        canvas=canvas,
        google=google,
        log_level=os.getenv("BRIDGE_LOG_LEVEL", "INFO"),
    )
