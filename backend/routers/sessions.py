"""Session endpoints: start a debate, ask for the next turn, stop, inspect."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from debate import (
    ConfigurationError,
    DebateService,
    SessionNotFoundError,
    SessionStoppedError,
    UnknownPersonaError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["Sessions"])


def get_debate_service(request: Request) -> DebateService:
    """Return the process-wide debate service attached at app creation."""
    return request.app.state.debate_service


# ============================================================================
# Request/Response Models
# ============================================================================


class StartSessionRequest(BaseModel):
    topic: str = Field(..., description="Seed question, spoken by the seed persona")
    rotation: Optional[list[str]] = Field(None, description="Speaking order, e.g. ['CLAUDE', 'GROK']")


class StartSessionResponse(BaseModel):
    session_id: str
    text: str
    persona: str
    turn_count: int


class NextTurnRequest(BaseModel):
    history: Optional[list[str]] = Field(
        None, description="Client-held transcript used when the server has no record of the session"
    )
    rotation: Optional[list[str]] = None


class NextTurnResponse(BaseModel):
    session_id: str
    text: str
    persona: str
    response: str
    transcript: list[str]
    turn_count: int
    dialogue_length: int


class SessionInfo(BaseModel):
    session_id: str
    status: str
    stop_reason: Optional[str] = None
    turn_count: int
    rotation: list[str]
    transcript: list[str]
    created_at: str


# ============================================================================
# Endpoints
# ============================================================================


@router.post("", response_model=StartSessionResponse, status_code=status.HTTP_201_CREATED)
async def start_session(
    req: StartSessionRequest,
    service: DebateService = Depends(get_debate_service),
) -> StartSessionResponse:
    try:
        session = await service.start_session(req.topic, req.rotation)
    except UnknownPersonaError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    seed = session.turns[0]
    return StartSessionResponse(
        session_id=session.session_id,
        text=seed.render(),
        persona=seed.speaker.tag,
        turn_count=session.turn_index,
    )


@router.post("/{session_id}/next", response_model=NextTurnResponse)
async def next_turn(
    session_id: str,
    req: Optional[NextTurnRequest] = None,
    service: DebateService = Depends(get_debate_service),
) -> NextTurnResponse:
    req = req or NextTurnRequest()
    try:
        session, outcome = await service.continue_session(session_id, req.history, req.rotation)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SessionStoppedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except UnknownPersonaError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    if not outcome.ok:
        code = (
            status.HTTP_503_SERVICE_UNAVAILABLE
            if isinstance(outcome.error, ConfigurationError)
            else status.HTTP_502_BAD_GATEWAY
        )
        raise HTTPException(status_code=code, detail=outcome.text)

    return NextTurnResponse(
        session_id=session.session_id,
        text=outcome.text,
        persona=outcome.persona.tag,
        response=outcome.turn.text,
        transcript=session.lines(),
        turn_count=session.turn_index,
        dialogue_length=len(session.turns),
    )


@router.post("/{session_id}/stop", response_model=SessionInfo)
async def stop_session(
    session_id: str,
    service: DebateService = Depends(get_debate_service),
) -> SessionInfo:
    try:
        session = await service.stop_session(session_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return SessionInfo(**session.to_dict())


@router.get("/{session_id}", response_model=SessionInfo)
async def get_session(
    session_id: str,
    service: DebateService = Depends(get_debate_service),
) -> SessionInfo:
    try:
        session = await service.get_session(session_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return SessionInfo(**session.to_dict())


@router.get("/{session_id}/script", response_class=PlainTextResponse)
async def get_script(
    session_id: str,
    service: DebateService = Depends(get_debate_service),
) -> str:
    """Return the transcript as plain text, one line per turn."""
    try:
        session = await service.get_session(session_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return "\n".join(session.lines()) + "\n"
