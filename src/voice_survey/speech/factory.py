"""Speech provider factory."""

from typing import Optional

from websockets.asyncio.server import ServerConnection

from ..config.settings import VoiceSettings
from .base import SpeechProvider
from .bridge import BridgeSpeechProvider


def create_provider(
    settings: VoiceSettings,
    connection: Optional[ServerConnection] = None,
) -> SpeechProvider:
    """Create the configured speech provider.

    Args:
        settings: Voice settings; ``provider`` is ``bridge`` or ``local``
        connection: Host connection, required for the bridge provider

    Returns:
        The speech provider for this session

    Raises:
        ValueError: If the provider is unknown or the bridge has no connection
    """
    match settings.provider:
        case "bridge":
            if connection is None:
                raise ValueError("The bridge speech provider needs a host connection")
            return BridgeSpeechProvider(connection)
        case "local":
            # audio stack is only loaded for local sessions
            from .local import LocalSpeechProvider
            return LocalSpeechProvider(settings)
        case _:
            raise ValueError(f"Unknown speech provider: {settings.provider!r}")
