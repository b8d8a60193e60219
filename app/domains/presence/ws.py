from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.core.event_bus import event_bus
from app.core.websocket_manager import websocket_manager
from app.shared.utils.logger import get_logger
from app.shared.utils.security import decode_token

logger = get_logger(__name__)

ws_router = APIRouter()


@ws_router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=4401)
        return
    payload = decode_token(token)
    if not payload or "sub" not in payload:
        await websocket.close(code=4401)
        return
    user_id = str(payload["sub"])

    await websocket_manager.connect(websocket, user_id=user_id)
    try:
        while True:
            data = await websocket.receive_text()
            await websocket_manager.handle_message(websocket, data)
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.warning(f"WebSocket error for user {user_id}: {e}")
    finally:
        # no awaits here: teardown may cancel this task
        info = websocket_manager.disconnect(websocket)
        if info:
            websocket_manager.spawn(event_bus.publish("websocket:disconnected", {
                "user_id": info.user_id,
                "rooms": list(info.rooms),
            }))
