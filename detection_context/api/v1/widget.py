"""
Widget WebSocket

The browser shell connects here, forwards host `data` events and translate
clicks, and receives slot updates as `{"slot": ..., "html": ...}`.
"""

import json
from typing import Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from detection_context.core.deps import ContextStoreDep, FalconDep, WorkflowDep
from detection_context.core.logging import get_logger
from detection_context.services.orchestrator import DetectionOrchestrator, resolve_language
from detection_context.widget.session import WidgetSession
from detection_context.widget.slots import WidgetSlots

logger = get_logger(__name__)

router = APIRouter()


@router.websocket("/widget")
async def widget_endpoint(
    websocket: WebSocket,
    store: ContextStoreDep,
    falcon: FalconDep,
    workflow: WorkflowDep,
    detection_id: Optional[str] = Query(None),
    language: Optional[str] = Query(None),
):
    await websocket.accept()

    if not language:
        language = websocket.headers.get("accept-language", "").split(",")[0]

    orchestrator = DetectionOrchestrator(
        store=store,
        host=falcon,
        workflow=workflow,
        slots=WidgetSlots.for_websocket(websocket),
        language=resolve_language(language),
    )
    session = WidgetSession(orchestrator)

    try:
        await session.start(detection_id)

        while True:
            data = await websocket.receive_text()

            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await websocket.send_json({"status": "error", "message": "Invalid JSON"})
                continue

            try:
                problem = await session.handle_message(message)
            except Exception as e:
                logger.error(f"Error handling widget message: {e}")
                await websocket.send_json({"status": "error", "message": "Internal error"})
                continue

            if problem:
                await websocket.send_json({"status": "error", "message": problem})

    except WebSocketDisconnect:
        logger.info("Widget disconnected")
    finally:
        await session.close()
