"""Abstract speech provider interface."""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

ReadyCallback = Callable[[], Awaitable[None]]
ResultCallback = Callable[[str], Awaitable[None]]
ErrorCallback = Callable[[str], Awaitable[None]]


class SpeechProvider(ABC):
    """Synthesis plus asynchronous recognition.

    Recognition results are never returned from a call; they arrive later
    through the bound callbacks.
    """

    # Whether speak(text, also_listen=True) starts recognition by itself.
    listens_after_speaking: bool = False

    def __init__(self):
        self.on_ready: Optional[ReadyCallback] = None
        self.on_result: Optional[ResultCallback] = None
        self.on_error: Optional[ErrorCallback] = None

    def bind(self, on_ready: ReadyCallback, on_result: ResultCallback, on_error: ErrorCallback) -> None:
        """Attach the recognition callbacks."""
        self.on_ready = on_ready
        self.on_result = on_result
        self.on_error = on_error

    @abstractmethod
    def is_supported(self) -> bool:
        """Whether this provider can speak and listen in the current environment."""
        pass

    @abstractmethod
    async def speak(self, text: str, also_listen: bool = False) -> None:
        """Play `text`; optionally start listening once playback completes."""
        pass

    @abstractmethod
    async def start_listening(self) -> None:
        """Begin one recognition attempt."""
        pass

    @abstractmethod
    async def stop_listening(self) -> None:
        """Abort the current recognition attempt, if any."""
        pass

    async def close(self) -> None:
        """Release provider resources."""
        return None
