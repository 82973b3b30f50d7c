"""
Structured JSON logger for request observability.

Outputs one JSON object per log line — parseable by jq, Loki, CloudWatch.
Timestamps are ISO-8601 UTC. The request id is always present.
"""
import json
import sys
import time
import uuid
from datetime import datetime, timezone


class BuilderLogger:
    """Structured logger that writes JSON lines to stderr."""

    def __init__(self, request_id: str = "", stream=None):
        self.request_id = request_id or str(uuid.uuid4())[:8]
        self.stream = stream or sys.stderr
        self._start = time.monotonic()

    def _emit(self, level: str, event: str, **fields):
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "event": event,
            "request": self.request_id,
            "elapsed_ms": int((time.monotonic() - self._start) * 1000),
        }
        record.update(fields)
        self.stream.write(json.dumps(record, ensure_ascii=False, default=str) + "\n")
        self.stream.flush()

    def info(self, event: str, **kw):
        self._emit("info", event, **kw)

    def warn(self, event: str, **kw):
        self._emit("warn", event, **kw)

    def error(self, event: str, **kw):
        self._emit("error", event, **kw)

    def submit(self, chars: int):
        self._emit("info", "request.submit", chars=chars)

    def rejected(self, reason: str):
        self._emit("warn", "request.rejected", reason=reason)

    def loading(self, description: str):
        self._emit("info", "request.loading", preview=description[:80])

    def succeeded(self, duration_ms: int, project: str | None, components: int):
        self._emit("info", "request.succeeded", duration_ms=duration_ms,
                   project=project, components=components)

    def failed(self, error_type: str, error: str, duration_ms: int):
        self._emit("error", "request.failed", error_type=error_type,
                   error=error, duration_ms=duration_ms)

    def api_call(self, model: str, max_tokens: int):
        self._emit("info", "api.call", model=model, max_tokens=max_tokens)

    def api_done(self, duration_ms: int, stop_reason: str | None, output_tokens: int | None = None):
        self._emit("info", "api.done", duration_ms=duration_ms,
                   stop_reason=stop_reason, output_tokens=output_tokens)

    def api_error(self, error_type: str, error: str, duration_ms: int):
        self._emit("error", "api.error", error_type=error_type,
                   error=error, duration_ms=duration_ms)
