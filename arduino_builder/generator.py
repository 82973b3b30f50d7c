"""
Project generator — the external generation call.

One Claude Messages request per description. The reply is expected to be
a single JSON object describing the project; every failure mode is mapped
to a GenerationError subclass. No caching and no retries: the SDK's own
retry loop is disabled so one submit means one request.
"""
import json
import re
import time
from typing import Any

import anthropic

from arduino_builder.config import CONFIG, GeneratorConfig, ensure_anthropic_key
from arduino_builder.errors import (
    JSONParseError, MalformedProjectError, ServiceUnavailableError, TokenLimitError,
)
from arduino_builder.logger import BuilderLogger
from arduino_builder.types import ArduinoProject
from arduino_builder.validators import validate_project

SYSTEM_PROMPT = """You are an Arduino project designer. Turn the user's description into a complete, buildable project.

Return ONLY valid JSON (no markdown fences, no explanation):
{
    "project_name": "short name",
    "description": "two or three sentences on what the project does",
    "code": "complete Arduino sketch (.ino) with setup() and loop(), commented",
    "components": [
        {"name": "Arduino Uno R3", "quantity": 1, "notes": "what it is used for"}
    ],
    "libraries": ["LiquidCrystal_I2C", ...],
    "circuit_diagram": "pin-by-pin wiring description, one connection per line, e.g. 'LED red anode -> D13 via 220 ohm resistor'"
}

List every part including resistors, wires and breadboard. Pin numbers in circuit_diagram must match the code.
Write all prose in the same language as the user's description."""


# ── JSON extraction ───────────────────────────────────────────

def _clean_json(raw: str) -> str:
    """Drop trailing commas and whole-line comments, common LLM JSON quirks."""
    raw = re.sub(r'(?m)^\s*//[^\n]*$', '', raw)           # whole-line comments
    raw = re.sub(r',\s*([}\]])', r'\1', raw)               # trailing commas
    return raw.strip()


def parse_json_response(text: str) -> Any:
    """Extract the JSON object from a Claude reply. Handles fences and prose."""
    text = text.strip()
    if not text:
        raise ValueError("JSON parse failed: empty response")

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    for m in re.finditer(r'```(?:json)?\s*\n(.*?)```', text, re.DOTALL):
        try:
            return json.loads(_clean_json(m.group(1)))
        except json.JSONDecodeError:
            continue

    # Outermost braces, ignoring any prose around them
    start, end = text.find('{'), text.rfind('}')
    if start >= 0 and end > start:
        candidate = text[start:end + 1]
        for attempt in (candidate, _clean_json(candidate)):
            try:
                return json.loads(attempt)
            except json.JSONDecodeError:
                continue

    raise ValueError(f"JSON parse failed: {text[:150]}...")


def _reply_text(response) -> str:
    return "".join(
        getattr(block, "text", "") for block in response.content
        if getattr(block, "type", "text") == "text"
    )


# ── Generator ─────────────────────────────────────────────────

class ProjectGenerator:
    def __init__(self, client=None, config: GeneratorConfig = CONFIG, logger: BuilderLogger | None = None):
        self.config = config
        self.logger = logger or BuilderLogger("generator")
        self._client = client

    @property
    def client(self):
        """Anthropic client, built on first use. Raises RuntimeError without a key."""
        if self._client is None:
            ensure_anthropic_key(self.config.credentials_path)
            self._client = anthropic.AsyncAnthropic(timeout=self.config.timeout_s, max_retries=0)
        return self._client

    async def generate(self, description: str) -> ArduinoProject:
        """Ask Claude for a project. Raises GenerationError subclasses."""
        try:
            client = self.client
        except RuntimeError as e:
            self.logger.api_error(type(e).__name__, str(e), 0)
            raise ServiceUnavailableError(str(e)) from e

        self.logger.api_call(self.config.model, self.config.max_tokens)
        t0 = time.monotonic()
        try:
            response = await client.messages.create(
                model=self.config.model,
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": description}],
            )
        except anthropic.APIStatusError as e:
            self.logger.api_error(type(e).__name__, str(e), _ms_since(t0))
            raise ServiceUnavailableError(f"AI service returned {e.status_code}", status_code=e.status_code) from e
        except anthropic.APIConnectionError as e:
            self.logger.api_error(type(e).__name__, str(e), _ms_since(t0))
            raise ServiceUnavailableError(f"AI service unreachable: {e}") from e

        usage = getattr(response, "usage", None)
        self.logger.api_done(_ms_since(t0), response.stop_reason, getattr(usage, "output_tokens", None))

        text = _reply_text(response)
        if response.stop_reason == "max_tokens":
            raise TokenLimitError(
                f"Reply truncated at {self.config.max_tokens} tokens",
                max_tokens=self.config.max_tokens,
            )
        try:
            data = parse_json_response(text)
        except ValueError as e:
            raise JSONParseError(str(e), raw_text=text) from e

        ok, problems = validate_project(data)
        if not ok:
            raise MalformedProjectError(f"Malformed project: {'; '.join(problems[:5])}", problems=problems)
        return ArduinoProject.from_dict(data)


def _ms_since(t0: float) -> int:
    return int((time.monotonic() - t0) * 1000)
