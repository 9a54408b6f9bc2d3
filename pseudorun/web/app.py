"""
PseudoRun Web API
FastAPI backend exposing batch runs and stepped debugging sessions.
Returns plain data only; rendering is the client's job.
"""

import uuid
import asyncio
import logging
from typing import List

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from pseudorun.modules.MyEnums import StepStates
from pseudorun.modules.ExecutionDriver import SteppedSession
from pseudorun.modules.InterpreterHelper import validate_source

logger = logging.getLogger(__name__)

app = FastAPI(title="PseudoRun", description="Pseudocode interpreter API")

# Open stepped sessions by id; each session owns its own interpreter state
sessions: dict[str, SteppedSession] = {}

MAX_STEPS = 10000  # Statements per request (infinite loop protection)
MAX_SESSIONS = 100

# Pydantic models for request/response
class RunRequest(BaseModel):
    code: str

class SessionRequest(BaseModel):
    code: str
    breakpoints: List[int] = []  # 1-based line numbers

class StepRequest(BaseModel):
    count: int = 1

class BreakpointRequest(BaseModel):
    line: int  # 1-based
    enabled: bool = True


def get_session(session_id: str) -> SteppedSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
    return session


def prune_sessions() -> None:
    """Drop finished sessions, then the oldest ones beyond MAX_SESSIONS"""
    for session_id in [sid for sid, s in sessions.items() if s.is_done]:
        del sessions[session_id]
    while len(sessions) >= MAX_SESSIONS:
        oldest = next(iter(sessions))
        logger.info(f"Evicting session {oldest}")
        del sessions[oldest]


async def advance(session: SteppedSession, max_steps: int) -> int:
    """Step a session until it stops or the budget runs out; returns steps executed"""
    steps_executed = 0
    if session.state == StepStates.PAUSED:
        # Run the breakpoint line we are sitting on
        session.step()
        steps_executed += 1

    while session.state == StepStates.READY and steps_executed < max_steps:
        session.step()
        steps_executed += 1

        # Yield control periodically for responsiveness
        if steps_executed % 100 == 0:
            await asyncio.sleep(0)

    return steps_executed


def step_limit_error(session: SteppedSession) -> dict:
    return {
        'kind': 'StepLimit',
        'message': f'Execution stopped after {MAX_STEPS} statements (infinite loop protection)',
        'line': session.current_line + 1,
    }


def session_response(session: SteppedSession, steps_executed: int) -> dict:
    data = {'success': session.error is None, 'steps_executed': steps_executed, **session.to_dict()}
    if session.state == StepStates.READY and steps_executed >= MAX_STEPS:
        data.update({'success': False, 'error': step_limit_error(session)})
    return data


@app.post("/api/run")
async def run_code(request: RunRequest):
    """Run a program to completion, within the statement budget"""
    session = SteppedSession(request.code)
    steps_executed = await advance(session, MAX_STEPS)
    result = session.result
    data = {'success': result.succeeded, 'steps_executed': steps_executed, **result.to_dict()}
    if not session.is_done:
        data.update({'success': False, 'error': step_limit_error(session)})
    return data

@app.post("/api/validate")
async def validate_code(request: RunRequest):
    """Check block structure without running"""
    errors = validate_source(request.code)
    return {'success': not errors, 'errors': [e.to_dict() for e in errors]}

@app.post("/api/sessions")
async def create_session(request: SessionRequest):
    """Start a stepped session"""
    prune_sessions()
    session = SteppedSession(request.code, [line - 1 for line in request.breakpoints])
    session_id = uuid.uuid4().hex
    sessions[session_id] = session
    logger.info(f"Created session {session_id}")
    return {'success': True, 'session_id': session_id, **session.to_dict()}

@app.get("/api/sessions/{session_id}")
async def get_session_state(session_id: str):
    """Get current session state"""
    session = get_session(session_id)
    return {'success': True, **session.to_dict()}

@app.post("/api/sessions/{session_id}/step")
async def step_session(session_id: str, request: StepRequest):
    """Execute up to `count` statements, stopping early at a breakpoint or the end"""
    session = get_session(session_id)
    count = min(max(request.count, 1), MAX_STEPS)
    steps_executed = 0
    while steps_executed < count and not session.is_done:
        session.step()
        steps_executed += 1
        if session.state != StepStates.READY:
            break
        if steps_executed % 100 == 0:
            await asyncio.sleep(0)
    return {'success': session.error is None, 'steps_executed': steps_executed, **session.to_dict()}

@app.post("/api/sessions/{session_id}/resume")
async def resume_session(session_id: str):
    """Run until breakpoint, end or error, within the statement budget"""
    session = get_session(session_id)
    steps_executed = await advance(session, MAX_STEPS)
    return session_response(session, steps_executed)

@app.post("/api/sessions/{session_id}/breakpoints")
async def set_breakpoint(session_id: str, request: BreakpointRequest):
    """Set or unset a breakpoint"""
    session = get_session(session_id)
    if request.enabled:
        session.add_breakpoint(request.line - 1)
    else:
        session.remove_breakpoint(request.line - 1)
    return {'success': True, 'breakpoints': sorted(b + 1 for b in session.breakpoints)}

@app.delete("/api/sessions/{session_id}/breakpoints")
async def clear_breakpoints(session_id: str):
    """Clear all breakpoints"""
    session = get_session(session_id)
    session.clear_breakpoints()
    return {'success': True, 'message': 'All breakpoints cleared', 'breakpoints': []}

@app.delete("/api/sessions/{session_id}")
async def close_session(session_id: str):
    """Abandon a session"""
    get_session(session_id)
    del sessions[session_id]
    return {'success': True, 'message': f'Session {session_id} closed'}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=5000, reload=False)
