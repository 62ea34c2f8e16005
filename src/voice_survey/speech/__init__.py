"""Speech providers and the gateway in front of them."""

from .base import SpeechProvider
from .bridge import BridgeSpeechProvider, parse_message
from .factory import create_provider
from .gateway import SpeechGateway
from .voices import select_voice

__all__ = [
    "SpeechProvider",
    "BridgeSpeechProvider",
    "SpeechGateway",
    "create_provider",
    "select_voice",
    "parse_message",
]
