"""Speech gateway: one speak/listen surface over whichever provider was configured."""

import logging
from typing import Awaitable, Callable, Optional

from ..status import StatusBoard
from .base import SpeechProvider

logger = logging.getLogger(__name__)

UtteranceHandler = Callable[[str], Awaitable[None]]


class SpeechGateway:
    """Wraps a SpeechProvider, mirrors its activity on the status board and
    hands recognized text to the flow controller.

    Provider failures are absorbed here: they become status strings and an
    error callback, never exceptions for the caller.
    """

    def __init__(self, provider: SpeechProvider, status: StatusBoard):
        self.provider = provider
        self.status = status
        self.listening = False
        self._result_handler: Optional[UtteranceHandler] = None
        self._error_handler: Optional[UtteranceHandler] = None
        provider.bind(self._on_ready, self._on_result, self._on_error)

    def connect(self, on_result: UtteranceHandler, on_error: UtteranceHandler) -> None:
        """Route recognition results and errors to the flow controller."""
        self._result_handler = on_result
        self._error_handler = on_error

    @property
    def listens_after_speaking(self) -> bool:
        return self.provider.listens_after_speaking

    def is_supported(self) -> bool:
        try:
            return self.provider.is_supported()
        except Exception as exc:
            logger.warning("Speech support check failed: %s", exc)
            return False

    async def speak(self, text: str, also_listen: bool = False) -> bool:
        """Play a prompt. Returns False when the provider failed."""
        logger.info("Speaking: %s", text)
        try:
            await self.provider.speak(text, also_listen=also_listen)
        except Exception as exc:
            logger.error("Speech synthesis failed: %s", exc)
            await self._on_error(f"synthesis: {exc}")
            return False
        return True

    async def start_listening(self) -> bool:
        try:
            await self.provider.start_listening()
        except Exception as exc:
            logger.error("Could not start listening: %s", exc)
            await self._on_error(f"recognition: {exc}")
            return False
        return True

    async def stop_listening(self) -> None:
        try:
            await self.provider.stop_listening()
        except Exception as exc:
            logger.warning("Could not stop listening: %s", exc)
        self.listening = False
        self.status.set_listening(False)

    async def close(self) -> None:
        await self.provider.close()

    async def _on_ready(self) -> None:
        self.listening = True
        self.status.listening = True
        self.status.update("Listening...")

    async def _on_result(self, text: str) -> None:
        self.listening = False
        self.status.listening = False
        self.status.update("Processing..." if text.strip() else "No speech detected")
        if self._result_handler:
            await self._result_handler(text)

    async def _on_error(self, code: str) -> None:
        self.listening = False
        self.status.listening = False
        self.status.update(f"Error: {code}")
        if self._error_handler:
            await self._error_handler(code)
