"""Configuration settings using Pydantic."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class VoiceSettings(BaseSettings):
    """Speech provider configuration."""
    model_config = SettingsConfigDict(env_prefix="VOICE_")

    provider: str = "bridge"  # bridge, local
    language: str = "en-US"
    rate: int = 160  # words per minute for local synthesis
    volume: float = 1.0
    voice_retries: int = 3
    listen_timeout: float = 10.0
    phrase_time_limit: float = 15.0


class FlowSettings(BaseSettings):
    """Timing and retry policy of the voice flow (seconds)."""
    model_config = SettingsConfigDict(env_prefix="FLOW_")

    settle_delay: float = 2.0
    transition_delay: float = 1.0
    queue_stagger: float = 0.5
    no_speech_retry_delay: float = 2.0
    error_retry_delay: float = 3.0
    max_retries: int = 3


class ServerSettings(BaseSettings):
    """WebSocket bridge server configuration."""
    model_config = SettingsConfigDict(env_prefix="SERVER_")

    host: str = "0.0.0.0"
    port: int = 8765
    health_port: int = 8080


class StorageSettings(BaseSettings):
    """Storage backend configuration."""
    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    backend: str = "local"  # local, supabase
    data_path: str = "./data"
    survey_id: str = ""  # empty: take the active survey


class SupabaseSettings(BaseSettings):
    """Supabase configuration."""
    model_config = SettingsConfigDict(env_prefix="SUPABASE_")

    url: str = ""
    key: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.key)


class Settings(BaseSettings):
    """Main application settings."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    voice: VoiceSettings = Field(default_factory=VoiceSettings)
    flow: FlowSettings = Field(default_factory=FlowSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    supabase: SupabaseSettings = Field(default_factory=SupabaseSettings)
