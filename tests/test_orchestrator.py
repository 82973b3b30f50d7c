"""
Request orchestrator tests — state machine transitions with fake generators.

Run: python -m pytest tests/ -v
"""
import asyncio
import io
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from arduino_builder.errors import GenerationError, JSONParseError, ValidationError
from arduino_builder.logger import BuilderLogger
from arduino_builder.orchestrator import RequestOrchestrator
from arduino_builder.state import (
    GENERATION_FAILED_MESSAGE, VALIDATION_MESSAGE,
    Failed, Idle, Loading, Succeeded, state_to_dict,
)
from arduino_builder.types import ArduinoProject, Component

PROJECT = ArduinoProject(
    project_name="Semáforo para pedestres",
    code="void setup() {\n  pinMode(13, OUTPUT);\n}\n\nvoid loop() {}\n",
    components=(Component("Arduino Uno R3", 1), Component("LED verde", 2, "pedestre")),
    circuit_diagram="LED verde anodo -> D13 via resistor 220 ohm",
)


class FakeGenerator:
    def __init__(self, result=PROJECT, error=None):
        self.result = result
        self.error = error
        self.calls: list[str] = []

    async def generate(self, description: str) -> ArduinoProject:
        self.calls.append(description)
        if self.error is not None:
            raise self.error
        return self.result


def make_orchestrator(generate, stream=None) -> RequestOrchestrator:
    return RequestOrchestrator(generate, logger=BuilderLogger("test", stream=stream or io.StringIO()))


# ── Validation ───────────────────────────────────────────────

class TestValidation:
    @pytest.mark.parametrize("text", ["", "   ", "\n\t", " \r\n  "])
    def test_blank_input_fails_without_call(self, text):
        gen = FakeGenerator()
        orch = make_orchestrator(gen.generate)
        state = asyncio.run(orch.submit(text))
        assert state == Failed(VALIDATION_MESSAGE, kind="validation")
        assert isinstance(state.cause, ValidationError)
        assert gen.calls == []

    def test_whitespace_scenario_history(self):
        orch = make_orchestrator(FakeGenerator().generate)
        asyncio.run(orch.submit("   "))
        assert orch.history == [Idle(), Failed(VALIDATION_MESSAGE, kind="validation")]

    def test_none_treated_as_blank(self):
        gen = FakeGenerator()
        orch = make_orchestrator(gen.generate)
        assert isinstance(asyncio.run(orch.submit(None)), Failed)
        assert gen.calls == []

    def test_recover_after_validation_error(self):
        gen = FakeGenerator()
        orch = make_orchestrator(gen.generate)
        asyncio.run(orch.submit(""))
        state = asyncio.run(orch.submit("pisca-pisca"))
        assert state == Succeeded(PROJECT)


# ── Generation ───────────────────────────────────────────────

class TestGeneration:
    def test_initial_state_is_idle(self):
        orch = make_orchestrator(FakeGenerator().generate)
        assert orch.state == Idle()
        assert not orch.is_loading

    def test_trimmed_text_forwarded_once(self):
        gen = FakeGenerator()
        orch = make_orchestrator(gen.generate)
        asyncio.run(orch.submit("  termômetro com LCD \n"))
        assert gen.calls == ["termômetro com LCD"]

    def test_success_scenario(self):
        text = "semáforo para pedestres com botão"
        orch = make_orchestrator(FakeGenerator().generate)
        asyncio.run(orch.submit(text))
        assert orch.history == [Idle(), Loading(text), Succeeded(PROJECT)]

    def test_failure_scenario(self):
        orch = make_orchestrator(FakeGenerator(error=RuntimeError("boom")).generate)
        asyncio.run(orch.submit("termômetro com LCD"))
        assert orch.history == [
            Idle(), Loading("termômetro com LCD"), Failed(GENERATION_FAILED_MESSAGE),
        ]

    def test_any_error_collapses_to_one_message(self):
        for error in (RuntimeError("x"), ValueError("y"), JSONParseError("bad", raw_text="{")):
            orch = make_orchestrator(FakeGenerator(error=error).generate)
            state = asyncio.run(orch.submit("algo"))
            assert state.message == GENERATION_FAILED_MESSAGE
            assert state.kind == "generation"

    def test_cause_kept_for_diagnostics(self):
        err = JSONParseError("bad json", raw_text="not json")
        orch = make_orchestrator(FakeGenerator(error=err).generate)
        state = asyncio.run(orch.submit("algo"))
        assert state.cause is err

    def test_foreign_error_wrapped(self):
        err = ConnectionError("reset")
        orch = make_orchestrator(FakeGenerator(error=err).generate)
        state = asyncio.run(orch.submit("algo"))
        assert isinstance(state.cause, GenerationError)
        assert state.cause.__cause__ is err

    def test_success_after_failure_clears_error(self):
        gen = FakeGenerator(error=RuntimeError("down"))
        orch = make_orchestrator(gen.generate)
        asyncio.run(orch.submit("algo"))
        gen.error = None
        state = asyncio.run(orch.submit("algo"))
        assert state == Succeeded(PROJECT)

    def test_failure_after_success_clears_result(self):
        gen = FakeGenerator()
        orch = make_orchestrator(gen.generate)
        asyncio.run(orch.submit("algo"))
        gen.error = RuntimeError("down")
        state = asyncio.run(orch.submit("algo"))
        assert isinstance(state, Failed)
        assert not hasattr(state, "project")

    def test_repeat_submit_same_shape(self):
        orch = make_orchestrator(FakeGenerator().generate)
        first = asyncio.run(orch.submit("alarme com sensor PIR"))
        second = asyncio.run(orch.submit("alarme com sensor PIR"))
        assert first == second
        assert [s.kind_name for s in orch.history] == [
            "idle", "loading", "succeeded", "loading", "succeeded",
        ]

    def test_loading_while_call_in_flight(self):
        seen = []

        async def generate(description):
            seen.append(orch.is_loading)
            return PROJECT

        orch = make_orchestrator(generate)
        asyncio.run(orch.submit("algo"))
        assert seen == [True]
        assert not orch.is_loading

    def test_opaque_result_still_succeeds(self):
        result = {"code": "x"}
        orch = make_orchestrator(FakeGenerator(result=result).generate)
        state = asyncio.run(orch.submit("algo"))
        assert state == Succeeded(result)
        assert not orch.is_loading

    def test_cancellation_propagates(self):
        async def generate(description):
            raise asyncio.CancelledError()

        orch = make_orchestrator(generate)
        with pytest.raises(asyncio.CancelledError):
            asyncio.run(orch.submit("algo"))
        assert isinstance(orch.state, Loading)


# ── Overlapping submits ──────────────────────────────────────

class TestOverlap:
    def test_last_resolution_wins(self):
        async def generate(description):
            await asyncio.sleep(0.05 if description == "lento" else 0)
            return ArduinoProject(project_name=description, code="//", circuit_diagram="-")

        orch = make_orchestrator(generate)

        async def both():
            await asyncio.gather(orch.submit("lento"), orch.submit("rápido"))

        asyncio.run(both())
        assert orch.state.project.project_name == "lento"


# ── Listeners & logging ──────────────────────────────────────

class TestObservers:
    def test_on_state_sees_each_transition(self):
        seen = []
        orch = make_orchestrator(FakeGenerator().generate)
        orch.on_state = seen.append
        asyncio.run(orch.submit("algo"))
        assert [s.kind_name for s in seen] == ["loading", "succeeded"]

    def test_json_log_lines(self):
        stream = io.StringIO()
        orch = make_orchestrator(FakeGenerator(error=RuntimeError("down")).generate, stream=stream)
        asyncio.run(orch.submit("algo"))
        records = [json.loads(line) for line in stream.getvalue().splitlines()]
        events = [r["event"] for r in records]
        assert events == ["request.submit", "request.loading", "request.failed"]
        assert all(r["request"] == "test" for r in records)
        assert records[-1]["error_type"] == "RuntimeError"


# ── Serialization ────────────────────────────────────────────

class TestStateToDict:
    def test_idle(self):
        assert state_to_dict(Idle()) == {"state": "idle"}

    def test_succeeded(self):
        out = state_to_dict(Succeeded(PROJECT))
        assert out["state"] == "succeeded"
        assert out["project"]["components"][1]["name"] == "LED verde"

    def test_failed(self):
        out = state_to_dict(Failed(VALIDATION_MESSAGE, kind="validation", cause=ValidationError()))
        assert out == {
            "state": "failed",
            "error": VALIDATION_MESSAGE,
            "error_kind": "validation",
            "error_type": "ValidationError",
        }
