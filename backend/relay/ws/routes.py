from __future__ import annotations

from fastapi import APIRouter, Depends, WebSocket

from relay.core.logging_config import get_logger
from relay.ws.dispatcher import RelayDispatcher


router = APIRouter()
logger = get_logger(__name__)


def get_dispatcher(websocket: WebSocket) -> RelayDispatcher:
    # Access the dispatcher created in main.create_app
    return websocket.app.state.dispatcher  # type: ignore[attr-defined]


@router.websocket("/")
@router.websocket("/ws")
async def websocket_relay_endpoint(
    websocket: WebSocket,
    dispatcher: RelayDispatcher = Depends(get_dispatcher),
) -> None:
    await websocket.accept()
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                data = message.get("bytes") or b""
                try:
                    raw = data.decode("utf-8")
                except UnicodeDecodeError:
                    logger.debug("dropping non-UTF-8 binary frame")
                    continue
            # Frames of one connection are handled strictly one after another
            await dispatcher.handle_frame(websocket, raw)
    except Exception:
        logger.error("websocket transport error", exc_info=True)
    finally:
        await dispatcher.handle_disconnect(websocket)
