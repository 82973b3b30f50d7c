"""
Config — centralized configuration with env overrides.

All generator and server parameters are configurable via ARDGEN_*
environment variables. The API key comes from ANTHROPIC_API_KEY or
a local credentials file and is only resolved when a client is built.
"""
import json
import os
from pathlib import Path
from dataclasses import dataclass

DEFAULT_CREDENTIALS_PATH = Path.home() / ".config/arduino-builder/credentials.json"


@dataclass(frozen=True)
class GeneratorConfig:
    """Immutable generator configuration. Env vars override defaults."""

    # Model
    model: str = os.getenv("ARDGEN_MODEL", "claude-opus-4-6")
    max_tokens: int = int(os.getenv("ARDGEN_MAX_TOKENS", "8192"))
    temperature: float = float(os.getenv("ARDGEN_TEMPERATURE", "0.4"))

    # Transport (the only timeout; the orchestrator enforces none)
    timeout_s: float = float(os.getenv("ARDGEN_TIMEOUT_S", "120"))

    # Server
    host: str = os.getenv("ARDGEN_HOST", "0.0.0.0")
    port: int = int(os.getenv("ARDGEN_PORT", "8000"))
    session_ttl_s: float = float(os.getenv("ARDGEN_SESSION_TTL_S", "3600"))
    max_sessions: int = int(os.getenv("ARDGEN_MAX_SESSIONS", "1000"))

    # Credentials
    credentials_path: str = os.getenv("ARDGEN_CREDENTIALS", str(DEFAULT_CREDENTIALS_PATH))


# Singleton
CONFIG = GeneratorConfig()


def load_anthropic_key(credentials_path: str | Path | None = None) -> str | None:
    """Load Anthropic API key from env or the credentials file."""
    key = os.environ.get("ANTHROPIC_API_KEY")
    if key:
        return key
    path = Path(credentials_path or CONFIG.credentials_path).expanduser()
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError):
        return None
    if isinstance(data, dict):
        return data.get("anthropic_api_key") or None
    return None


def ensure_anthropic_key(credentials_path: str | Path | None = None) -> str:
    """Set ANTHROPIC_API_KEY in env if not already set."""
    key = load_anthropic_key(credentials_path)
    if not key:
        raise RuntimeError(
            "No Anthropic API key found. Set ANTHROPIC_API_KEY or add "
            "anthropic_api_key to the credentials file."
        )
    os.environ["ANTHROPIC_API_KEY"] = key
    return key
