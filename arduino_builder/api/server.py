"""
FastAPI server — presentation layer over the request orchestrator.

POST   /generate                → one request, run to completion
POST   /generate/stream         → SSE stream of state transitions
POST   /sessions                → new form session (Idle)
GET    /sessions/{id}           → current state of a session
POST   /sessions/{id}/submit    → start a request; 409 while loading
DELETE /sessions/{id}           → drop a session
GET    /health                  → healthcheck
GET    /metrics                 → generation counters
"""
import asyncio
import json
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.responses import Response, StreamingResponse

from arduino_builder.api.sessions import FormSession, SessionStore
from arduino_builder.config import CONFIG, load_anthropic_key
from arduino_builder.generator import ProjectGenerator
from arduino_builder.logger import BuilderLogger
from arduino_builder.metrics import GeneratorMetrics
from arduino_builder.middleware import RequestTracingMiddleware
from arduino_builder.orchestrator import RequestOrchestrator
from arduino_builder.state import Failed, Loading, RequestState, Succeeded, state_to_dict

app = FastAPI(
    title="Arduino Project Builder",
    description=(
        "Describe an electronics project in natural language and get back an "
        "Arduino sketch, a parts list and a wiring description."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestTracingMiddleware)

SESSIONS = SessionStore(ttl_s=CONFIG.session_ttl_s, max_sessions=CONFIG.max_sessions)
_background: set[asyncio.Task] = set()


def _spawn(coro) -> asyncio.Task:
    """Run in the background, holding a reference until done."""
    task = asyncio.create_task(coro)
    _background.add(task)
    task.add_done_callback(_background.discard)
    return task


class GenerateRequest(BaseModel):
    description: str = Field(..., description="Natural language Arduino project description")


@lru_cache(maxsize=1)
def get_generator() -> ProjectGenerator:
    return ProjectGenerator()


def _orchestrator(generator: ProjectGenerator, request: Request) -> RequestOrchestrator:
    request_id = getattr(request.state, "request_id", "")
    return RequestOrchestrator(generator.generate, logger=BuilderLogger(request_id))


def _session_body(session: FormSession) -> dict:
    orch = session.orchestrator
    return {
        "session_id": session.session_id,
        "state": state_to_dict(orch.state),
        "history": [s.kind_name for s in orch.history],
    }


def _get_session(session_id: str) -> FormSession:
    session = SESSIONS.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Unknown session '{session_id}'")
    return session


def _status_code(state: RequestState) -> int:
    if isinstance(state, Failed):
        return 400 if state.kind == "validation" else 502
    return 200


def _sse(event: str, data: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(data, ensure_ascii=False)}\n\n"


## ── One-shot generation ──────────────────────────────────────

@app.post("/generate")
async def generate_project(req: GenerateRequest, request: Request,
                           generator: ProjectGenerator = Depends(get_generator)):
    """Generate a project and wait for the result."""
    orch = _orchestrator(generator, request)
    state = await orch.submit(req.description)
    body = {
        "status": state.kind_name,
        "state": state_to_dict(state),
        "history": [s.kind_name for s in orch.history],
    }
    if isinstance(state, Succeeded):
        return body
    return JSONResponse(status_code=_status_code(state), content=body)


@app.post("/generate/stream")
async def generate_stream(req: GenerateRequest, request: Request,
                          generator: ProjectGenerator = Depends(get_generator)):
    """Server-Sent Events stream: one `state` event per transition, then `done`."""
    orch = _orchestrator(generator, request)

    async def event_generator():
        queue: asyncio.Queue = asyncio.Queue()
        orch.on_state = queue.put_nowait
        yield _sse("state", state_to_dict(orch.state))

        task = _spawn(orch.submit(req.description))
        while True:
            state = await queue.get()
            yield _sse("state", state_to_dict(state))
            if not isinstance(state, Loading):
                break
        await task
        yield "event: done\ndata: {}\n\n"

    return StreamingResponse(event_generator(), media_type="text/event-stream")


## ── Form sessions ────────────────────────────────────────────

@app.post("/sessions", status_code=201)
async def create_session(request: Request, generator: ProjectGenerator = Depends(get_generator)):
    session = SESSIONS.create(_orchestrator(generator, request))
    return _session_body(session)


@app.get("/sessions/{session_id}")
async def get_session(session_id: str):
    return _session_body(_get_session(session_id))


@app.post("/sessions/{session_id}/submit", status_code=202)
async def submit_session(session_id: str, req: GenerateRequest):
    """Start a request in the background. Rejected while one is loading."""
    session = _get_session(session_id)
    if session.orchestrator.is_loading:
        return JSONResponse(
            status_code=409,
            content={"error": "A generation request is already in progress.",
                     **_session_body(session)},
        )
    _spawn(session.orchestrator.submit(req.description))
    # Let submit() run up to its first suspension point
    await asyncio.sleep(0)
    return _session_body(session)


@app.delete("/sessions/{session_id}", status_code=204)
async def delete_session(session_id: str):
    if not SESSIONS.remove(session_id):
        raise HTTPException(status_code=404, detail=f"Unknown session '{session_id}'")
    return Response(status_code=204)


## ── Ops ──────────────────────────────────────────────────────

@app.get("/health")
async def health():
    has_key = load_anthropic_key() is not None
    return {
        "status": "ok" if has_key else "no_api_key",
        "model": CONFIG.model,
        "api_key_configured": has_key,
        "sessions": len(SESSIONS),
    }


@app.get("/metrics")
async def metrics():
    return GeneratorMetrics().snapshot()
