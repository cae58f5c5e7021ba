"""WebSocket endpoint: command requests in, reminders and responses out."""

import json
import logging
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)


def _decode_frame(message: dict[str, Any]) -> Any:
    """JSON body of a text frame; None for binary or malformed frames."""
    text = message.get("text")
    if text is None:
        logger.debug("non_text_frame")
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        logger.debug("invalid_frame", extra={"frame.length": len(text)})
        return None


async def websocket_endpoint(websocket: WebSocket) -> None:
    server = websocket.app.state.server
    hub = server.hub
    commands = server.commands

    await websocket.accept()
    hub.add(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            response = await commands.handle(_decode_frame(message))
            await websocket.send_json(response.model_dump(exclude_none=True))
    except WebSocketDisconnect:
        pass
    finally:
        hub.discard(websocket)
