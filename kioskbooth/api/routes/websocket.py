from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Depends
import asyncio
import logging

from kioskbooth.config import settings
from kioskbooth.services.camera import CameraService
from kioskbooth.services.session import SessionManager
from kioskbooth.services.websocket import WebSocketManager
from kioskbooth.api.dependencies import get_camera_service, get_session_manager, get_websocket_manager

router = APIRouter()
logger = logging.getLogger(__name__)


def session_snapshot(manager: SessionManager) -> dict:
    """What a (re)connecting kiosk screen needs to resume the current session."""
    session = manager.current()
    if session is None:
        return {"type": "session", "session_id": None}
    machine = session.machine
    return {
        "type": "session",
        "session_id": session.session_id,
        "phase": session.phase.value,
        "countdown": machine.countdown if machine else None,
        "message": machine.message if machine else "",
        "photo_count": len(machine.photos) if machine else 0,
        "capture_complete": session.capture_complete,
    }


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    camera_service: CameraService = Depends(get_camera_service),
    manager: SessionManager = Depends(get_session_manager),
    websocket_manager: WebSocketManager = Depends(get_websocket_manager)
):
    """Live preview frames plus the capture events published by the session manager."""
    await websocket_manager.connect(websocket)
    delay = 1 / max(1, settings.preview_fps)
    try:
        await websocket.send_json(session_snapshot(manager))
        while True:
            frame = camera_service.get_preview_frame()
            if frame:
                await websocket.send_json({"type": "preview", "data": frame})
            await asyncio.sleep(delay)
    except WebSocketDisconnect:
        logger.info("Kiosk screen disconnected")
    except Exception as e:
        logger.warning("WebSocket error: %s", e)
    finally:
        websocket_manager.disconnect(websocket)
