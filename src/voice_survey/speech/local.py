"""In-process speech provider: pyttsx3 synthesis and SpeechRecognition capture."""

import asyncio
import logging
from typing import Any, Optional

import pyttsx3
import speech_recognition as sr

from ..config.settings import VoiceSettings
from .base import SpeechProvider
from .voices import select_voice

logger = logging.getLogger(__name__)


class LocalSpeechProvider(SpeechProvider):
    """Speaks through the local audio device and listens on the default microphone.

    pyttsx3 and SpeechRecognition block, so every call runs in a worker
    thread. Recognition never auto-starts after speaking; the controller
    asks for it explicitly.
    """

    listens_after_speaking = False

    def __init__(self, settings: VoiceSettings):
        super().__init__()
        self.settings = settings
        self.recognizer = sr.Recognizer()
        self._engine: Optional[Any] = None
        self._voice_id: Optional[str] = None
        self._listen_task: Optional[asyncio.Task] = None

    def _ensure_engine(self) -> Any:
        if self._engine is None:
            engine = pyttsx3.init()
            engine.setProperty("rate", self.settings.rate)
            engine.setProperty("volume", self.settings.volume)
            self._engine = engine
        return self._engine

    def is_supported(self) -> bool:
        try:
            self._ensure_engine()
            if not sr.Microphone.list_microphone_names():
                logger.warning("No microphone devices found")
                return False
            sr.Microphone()
        except Exception as exc:
            logger.warning("Local speech unavailable: %s", exc)
            return False
        return True

    async def _resolve_voice(self) -> Optional[str]:
        """Pick a voice, re-enumerating with backoff while the engine reports none."""
        if self._voice_id is not None:
            return self._voice_id
        engine = self._ensure_engine()
        for attempt in range(1, self.settings.voice_retries + 1):
            voices = engine.getProperty("voices") or []
            if voices:
                voice = select_voice(voices, self.settings.language)
                self._voice_id = voice.id
                logger.info("Selected voice: %s", getattr(voice, "name", voice.id))
                return self._voice_id
            logger.info("No voices yet, retry %d/%d", attempt, self.settings.voice_retries)
            await asyncio.sleep(0.5 * attempt)
        logger.warning("No voices enumerated, speaking with the engine default")
        return None

    def _say(self, text: str, voice_id: Optional[str]) -> None:
        engine = self._ensure_engine()
        if voice_id is not None:
            engine.setProperty("voice", voice_id)
        engine.say(text)
        engine.runAndWait()

    async def speak(self, text: str, also_listen: bool = False) -> None:
        # also_listen is only a hint here; listening is requested separately.
        voice_id = await self._resolve_voice()
        await asyncio.to_thread(self._say, text, voice_id)

    def _capture(self) -> str:
        # A cancelled listen leaves its worker holding the previous microphone.
        with sr.Microphone() as source:
            audio = self.recognizer.listen(
                source,
                timeout=self.settings.listen_timeout,
                phrase_time_limit=self.settings.phrase_time_limit,
            )
        return self.recognizer.recognize_google(audio, language=self.settings.language).strip()

    async def _listen_once(self) -> None:
        if self.on_ready:
            await self.on_ready()
        try:
            text = await asyncio.to_thread(self._capture)
        except (sr.WaitTimeoutError, sr.UnknownValueError):
            text = ""
        except sr.RequestError as exc:
            if self.on_error:
                await self.on_error(f"network: {exc}")
            return
        except OSError as exc:
            if self.on_error:
                await self.on_error(f"audio-capture: {exc}")
            return
        except Exception as exc:
            logger.exception("Speech capture failed")
            if self.on_error:
                await self.on_error(f"recognition: {exc}")
            return
        if self.on_result:
            await self.on_result(text)

    async def start_listening(self) -> None:
        if self._listen_task is not None and not self._listen_task.done():
            return
        self._listen_task = asyncio.create_task(self._listen_once())

    async def stop_listening(self) -> None:
        # The worker thread cannot be interrupted; its result is dropped instead.
        if self._listen_task is not None and not self._listen_task.done():
            self._listen_task.cancel()
        self._listen_task = None

    async def close(self) -> None:
        await self.stop_listening()
        if self._engine is not None:
            self._engine.stop()
