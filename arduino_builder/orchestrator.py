"""
Request Orchestrator — lifecycle of one generation request.

submit(text): trimmed-empty → Failed(validation); otherwise Loading, one
awaited generate() call, then Succeeded or Failed(generation).

No single-flight guard here: presentation layers block submits while
loading. Overlapping submits that bypass them resolve last-write-wins.
"""
import time
from typing import Awaitable, Callable

from arduino_builder.errors import GenerationError, ValidationError
from arduino_builder.logger import BuilderLogger
from arduino_builder.metrics import GeneratorMetrics
from arduino_builder.state import (
    GENERATION_FAILED_MESSAGE, VALIDATION_MESSAGE,
    Failed, Idle, Loading, RequestState, Succeeded,
)
from arduino_builder.types import ArduinoProject

GenerateFn = Callable[[str], Awaitable[ArduinoProject]]


class RequestOrchestrator:
    def __init__(self, generate: GenerateFn, logger: BuilderLogger | None = None,
                 metrics: GeneratorMetrics | None = None):
        self.generate = generate
        self.logger = logger or BuilderLogger()
        self.metrics = metrics or GeneratorMetrics()
        self.on_state: Callable[[RequestState], None] | None = None
        self._state: RequestState = Idle()
        self.history: list[RequestState] = [self._state]

    @property
    def state(self) -> RequestState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return isinstance(self._state, Loading)

    def _transition(self, new_state: RequestState):
        self._state = new_state
        self.history.append(new_state)
        if self.on_state:
            self.on_state(new_state)

    async def submit(self, text: str) -> RequestState:
        """Run one generation request and return the state it ends in."""
        self.metrics.record_submission()
        self.logger.submit(len(text or ""))

        description = (text or "").strip()
        if not description:
            self.metrics.record_rejected()
            self.logger.rejected("empty description")
            self._transition(Failed(VALIDATION_MESSAGE, kind="validation", cause=ValidationError()))
            return self._state

        self._transition(Loading(description))
        self.logger.loading(description)
        t0 = time.monotonic()
        try:
            project = await self.generate(description)
        except Exception as e:
            duration_ms = int((time.monotonic() - t0) * 1000)
            cause = e if isinstance(e, GenerationError) else GenerationError(str(e) or type(e).__name__)
            if cause is not e:
                cause.__cause__ = e
            error_type = type(e).__name__
            self.metrics.record_failure(error_type, duration_ms)
            self.logger.failed(error_type, str(e), duration_ms)
            self._transition(Failed(GENERATION_FAILED_MESSAGE, kind="generation", cause=cause))
            return self._state

        duration_ms = int((time.monotonic() - t0) * 1000)
        self.metrics.record_success(duration_ms)
        # Result is opaque here; log fields are best-effort
        self.logger.succeeded(
            duration_ms,
            getattr(project, "project_name", None),
            len(getattr(project, "components", None) or ()),
        )
        self._transition(Succeeded(project))
        return self._state
