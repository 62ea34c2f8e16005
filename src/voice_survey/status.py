"""Status surface published to the hosting page."""

from dataclasses import dataclass
from typing import Callable

START_LABEL = "Start Voice"
STOP_LABEL = "Stop Voice"


@dataclass(frozen=True)
class StatusUpdate:
    """Snapshot of the status text and the voice toggle control."""
    text: str
    listening: bool
    enabled: bool

    @property
    def toggle_label(self) -> str:
        return STOP_LABEL if self.listening else START_LABEL


StatusListener = Callable[[StatusUpdate], None]


class StatusBoard:
    """Holds the status line and toggle state; pushes every change to subscribers."""

    def __init__(self):
        self.text = "Ready"
        self.listening = False
        self.enabled = True
        self._listeners: list[StatusListener] = []

    def subscribe(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    def snapshot(self) -> StatusUpdate:
        return StatusUpdate(text=self.text, listening=self.listening, enabled=self.enabled)

    def _publish(self) -> None:
        update = self.snapshot()
        for listener in self._listeners:
            listener(update)

    def update(self, text: str) -> None:
        self.text = text
        self._publish()

    def set_listening(self, listening: bool) -> None:
        self.listening = listening
        self._publish()

    def disable(self, reason: str) -> None:
        """Turn the voice toggle off for good, explaining why on the status line."""
        self.enabled = False
        self.listening = False
        self.text = reason
        self._publish()
