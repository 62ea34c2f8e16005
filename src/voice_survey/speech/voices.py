"""Synthesis voice selection."""

import re
from typing import Any, Optional, Sequence

MALE_NAME_HINTS = ("male", "david", "alex", "google", "microsoft")


def _voice_languages(voice: Any) -> list[str]:
    languages = []
    for language in getattr(voice, "languages", None) or []:
        if isinstance(language, bytes):
            # espeak reports languages as b"\x05en-us"
            language = language.decode("utf-8", errors="ignore")
        languages.append(language.strip("\x00\x01\x02\x03\x04\x05 ").lower())
    return languages


def voice_matches_language(voice: Any, language: str) -> bool:
    """Whether `voice` speaks the primary subtag of `language` ("en" of "en-US")."""
    primary = language.split("-")[0].lower()
    if any(lang.startswith(primary) for lang in _voice_languages(voice)):
        return True
    voice_id = str(getattr(voice, "id", "")).lower()
    return f"{primary}-" in voice_id or f"{primary}_" in voice_id or voice_id.endswith(f"/{primary}")


def select_voice(voices: Sequence[Any], language: str) -> Optional[Any]:
    """Prefer a male-sounding voice in `language`, else the first voice available."""
    for voice in voices:
        if not voice_matches_language(voice, language):
            continue
        name_words = set(re.split(r"\W+", str(getattr(voice, "name", "")).lower()))
        gender = str(getattr(voice, "gender", "") or "").lower()
        if gender == "male" or name_words.intersection(MALE_NAME_HINTS):
            return voice
    return voices[0] if voices else None
