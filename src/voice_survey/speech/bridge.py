"""Bridge speech provider: native speech exposed by an embedding shell over WebSocket."""

import asyncio
import json
import logging
from typing import Any, Optional, Union

from websockets.asyncio.server import ServerConnection
from websockets.exceptions import ConnectionClosed

from ..models import FieldChange
from ..status import StatusUpdate
from .base import SpeechProvider

logger = logging.getLogger(__name__)


class BridgeSpeechProvider(SpeechProvider):
    """Forwards speech actions to the host shell and relays its events back.

    Outbound actions: ``speak`` (text, listen), ``start_listening``,
    ``stop_listening``, ``status``, ``field_change``. Inbound events:
    ``bridge_ready``, ``ready``, ``result``, ``error``.
    """

    listens_after_speaking = True

    def __init__(self, connection: ServerConnection):
        super().__init__()
        self.connection = connection
        self.capabilities: dict[str, Any] = {}
        self.bridge_ready = False
        self._outbox: set[asyncio.Task] = set()

    def is_supported(self) -> bool:
        return self.bridge_ready and bool(self.capabilities.get("speech", False))

    async def _send(self, payload: dict) -> None:
        try:
            await self.connection.send(json.dumps(payload))
        except ConnectionClosed:
            logger.info("Bridge closed, dropped %s", payload.get("action"))

    async def speak(self, text: str, also_listen: bool = False) -> None:
        await self._send({"action": "speak", "text": text, "listen": also_listen})

    async def start_listening(self) -> None:
        await self._send({"action": "start_listening"})

    async def stop_listening(self) -> None:
        await self._send({"action": "stop_listening"})

    def _post(self, payload: dict) -> None:
        """Send from synchronous listeners without blocking them."""
        task = asyncio.get_running_loop().create_task(self._send(payload))
        self._outbox.add(task)
        task.add_done_callback(self._outbox.discard)

    def publish_status(self, update: StatusUpdate) -> None:
        self._post({
            "action": "status",
            "text": update.text,
            "listening": update.listening,
            "enabled": update.enabled,
            "toggle_label": update.toggle_label,
        })

    def publish_change(self, change: FieldChange) -> None:
        self._post({
            "action": "field_change",
            "field": change.field_id,
            "value": change.value,
            "event": change.event,
        })

    async def handle_event(self, payload: dict) -> bool:
        """Route one speech event to the bound callbacks.

        Returns False for events this provider does not own, leaving them to
        the caller.
        """
        match payload.get("event"):
            case "bridge_ready":
                self.bridge_ready = True
                self.capabilities = {"speech": bool(payload.get("speech", True))}
            case "ready":
                if self.on_ready:
                    await self.on_ready()
            case "result":
                if self.on_result:
                    await self.on_result(str(payload.get("text") or ""))
            case "error":
                if self.on_error:
                    await self.on_error(str(payload.get("code") or "unknown"))
            case _:
                return False
        return True


def parse_message(message: Union[str, bytes]) -> Optional[dict]:
    """Decode a host message; None when it is not a JSON object."""
    try:
        payload = json.loads(message)
    except (TypeError, ValueError):
        logger.warning("Ignoring malformed bridge message (%d bytes)", len(message))
        return None
    if not isinstance(payload, dict):
        logger.warning("Ignoring non-object bridge message")
        return None
    return payload
