"""WebSocket channel streaming a paced debate to one viewer.

Protocol:
- Client sends: {"action": "start", "topic": "...", "rotation": [...]?}
- Client sends: {"action": "typing_completed"} once a line has been presented
- Client sends: {"action": "stop"} / {"action": "ping"}
- Server sends: {"type": "message", "text", "persona", "should_persist", ...}
- Server sends: {"type": "stopped"} after a stop (or a restart) and
  {"type": "session_ended", "status", ...} when a run finishes
- Server sends: {"type": "error", "message": "..."} for rejected commands
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from fastapi.websockets import WebSocketState

from debate import DebateRunner, DebateService, UnknownPersonaError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Live"])


class LiveConnection:
    """One viewer connection and the debate it is currently watching."""

    def __init__(self, websocket: WebSocket, service: DebateService):
        self.websocket = websocket
        self.service = service
        self.runner: Optional[DebateRunner] = None
        self.task: Optional[asyncio.Task] = None

    async def send(self, event: Dict[str, Any]) -> None:
        connected = (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )
        if not connected:
            logger.debug(f"Dropping {event.get('type')} event for closed connection")
            return
        await self.websocket.send_json(event)

    async def stop_current(self, reason: str) -> bool:
        """Stop the running debate, if any, and wait for its loop to wind down."""
        if self.runner is None:
            return False
        self.runner.stop(reason)
        if self.task is not None:
            await self.task
        self.runner = None
        self.task = None
        return True

    async def start(self, data: Dict[str, Any]) -> None:
        if await self.stop_current("restarted"):
            await self.send({"type": "stopped"})

        topic = str(data.get("topic") or data.get("initialPrompt") or "")
        try:
            runner = await self.service.open_live(topic, self.send, data.get("rotation"))
        except (UnknownPersonaError, ValueError) as exc:
            await self.send({"type": "error", "message": str(exc)})
            return
        self.runner = runner
        self.task = asyncio.create_task(self._run(runner))

    async def _run(self, runner: DebateRunner) -> None:
        try:
            await self.service.run_live(runner)
        except Exception as exc:
            logger.exception(f"Session {runner.session.session_id} - live run failed")
            await self.send({"type": "error", "message": str(exc) or type(exc).__name__})

    async def stop(self) -> None:
        await self.stop_current("stopped by viewer")
        await self.send({"type": "stopped"})

    def acknowledge(self) -> None:
        if self.runner is not None:
            self.runner.acknowledge()

    async def close(self) -> None:
        if self.runner is not None:
            self.runner.stop("viewer disconnected")
        if self.task is not None and not self.task.done():
            await self.task


@router.websocket("/live")
async def live_debate(websocket: WebSocket):
    await websocket.accept()
    connection = LiveConnection(websocket, websocket.app.state.debate_service)
    connection_id = str(id(websocket))
    logger.info(f"User connected: {connection_id}")

    try:
        while True:
            try:
                data = await websocket.receive_json()
            except ValueError as exc:
                await connection.send({"type": "error", "message": f"Invalid JSON frame: {exc}"})
                continue
            action = data.get("action") if isinstance(data, dict) else None

            if action == "start":
                await connection.start(data)
            elif action == "stop":
                await connection.stop()
            elif action in ("typing_completed", "ack"):
                connection.acknowledge()
            elif action == "ping":
                await connection.send({"type": "pong"})
            else:
                await connection.send({"type": "error", "message": f"Unknown action: {action!r}"})

    except WebSocketDisconnect:
        logger.info(f"User disconnected: {connection_id}")
    finally:
        await connection.close()
