"""WebSocket routes for real-time execution updates.

Client messages:
- {"type": "run", "block_on_missing": true}  start a run of the stored flow
- {"type": "stop"}                           stop the current run before its next node
- {"type": "ping"}                           liveness check
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from mediaflow import FlowRunner
from mediaflow.visual.scheduler import CycleDetectedError
from mediaflow.visual.validation import MissingRequiredInputError

from ..models import ExecutionEvent
from ..services.executor import create_runner

# Flow storage reference (shared with flows.py)
from .flows import _flows

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])

# Active runners (keyed by connection_id) so "stop" can reach them
_runners: Dict[str, FlowRunner] = {}

_MAX_JSON_DEPTH = 64


def _json_safe(value: Any, *, depth: int = 0) -> Any:
    """Best-effort JSON-safe conversion (no truncation)."""
    if depth > _MAX_JSON_DEPTH:
        return str(value)
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, dict):
        return {str(k): _json_safe(v, depth=depth + 1) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v, depth=depth + 1) for v in value]
    if hasattr(value, "model_dump") and callable(getattr(value, "model_dump")):
        return _json_safe(value.model_dump(), depth=depth + 1)
    return str(value)


async def _send_event(websocket: WebSocket, event: ExecutionEvent) -> None:
    await websocket.send_json(_json_safe(event.model_dump()))


@router.websocket("/ws/{flow_id}")
async def websocket_execution(websocket: WebSocket, flow_id: str):
    """WebSocket endpoint for real-time flow execution updates."""
    await websocket.accept()
    connection_id = f"{flow_id}:{id(websocket)}"
    task: Optional[asyncio.Task] = None

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError as e:
                await _send_event(websocket, ExecutionEvent(type="flow_error", error=f"Invalid message: {e}"))
                continue
            if not isinstance(message, dict):
                await _send_event(websocket, ExecutionEvent(type="flow_error", error="Invalid message: expected a JSON object"))
                continue
            kind = message.get("type")

            if kind == "run":
                if task is not None and not task.done():
                    await _send_event(websocket, ExecutionEvent(type="flow_error", error="Flow is already running"))
                    continue
                task = asyncio.create_task(
                    execute_with_updates(
                        websocket=websocket,
                        flow_id=flow_id,
                        connection_id=connection_id,
                        block_on_missing=bool(message.get("block_on_missing", True)),
                    )
                )
            elif kind == "stop":
                runner = _runners.get(connection_id)
                if runner is not None:
                    runner.stop()
            elif kind == "ping":
                await websocket.send_json({"type": "pong"})

    except WebSocketDisconnect:
        pass
    finally:
        runner = _runners.pop(connection_id, None)
        if runner is not None:
            runner.stop()
        if task is not None and not task.done():
            task.cancel()


async def execute_with_updates(
    websocket: WebSocket,
    flow_id: str,
    connection_id: str,
    block_on_missing: bool = True,
) -> None:
    """Execute a flow and send one event per step via WebSocket.

    Each step runs in a worker thread so slow generation handlers do not block
    the event loop (and a "stop" message can be received meanwhile).
    """
    if flow_id not in _flows:
        await _send_event(websocket, ExecutionEvent(type="flow_error", error=f"Flow '{flow_id}' not found"))
        return

    runner = create_runner(_flows[flow_id], block_on_missing=block_on_missing)
    _runners[connection_id] = runner
    events = runner.iter_run()
    try:
        while True:
            event = await asyncio.to_thread(next, events, None)
            if event is None:
                break
            await _send_event(websocket, event)
    except MissingRequiredInputError as e:
        await _send_event(
            websocket,
            ExecutionEvent(
                type="flow_error",
                error=str(e),
                result={node_id: [m.model_dump() for m in items] for node_id, items in e.missing.items()},
            ),
        )
    except CycleDetectedError as e:
        await _send_event(websocket, ExecutionEvent(type="flow_error", error=str(e)))
    except Exception as e:
        logger.exception(f"Run of flow '{flow_id}' failed")
        await _send_event(websocket, ExecutionEvent(type="flow_error", error=str(e)))
    finally:
        if _runners.get(connection_id) is runner:
            del _runners[connection_id]
