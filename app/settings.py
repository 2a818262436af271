import json
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

GEMINI_PLACEHOLDER_KEY = "your_gemini_api_key_here"


class Settings(BaseSettings):
    app_name: str = "sathi-support-bot"
    app_version: str = "1.0.0"
    cors_origins_raw: str | None = Field(None, env="CORS_ORIGINS", validation_alias="cors_origins")
    app_env: Literal["dev", "prod"] = Field("prod", env="APP_ENV")
    strict_cors: bool = Field(False, env="STRICT_CORS")
    rate_limit_max_requests: int = Field(100, env="RATE_LIMIT_MAX_REQUESTS")
    rate_limit_window_seconds: int = Field(15 * 60, env="RATE_LIMIT_WINDOW_SECONDS")
    gemini_api_key: str | None = Field(None, env="GEMINI_API_KEY")
    gemini_api_url: str = Field(
        "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-pro:generateContent",
        env="GEMINI_API_URL",
    )
    gemini_timeout_seconds: float = Field(30.0, env="GEMINI_TIMEOUT_SECONDS")
    gemini_temperature: float = Field(0.9, env="GEMINI_TEMPERATURE")
    gemini_top_k: int = Field(40, env="GEMINI_TOP_K")
    gemini_top_p: float = Field(0.95, env="GEMINI_TOP_P")
    gemini_max_output_tokens: int = Field(1024, env="GEMINI_MAX_OUTPUT_TOKENS")
    chat_history_turns: int = Field(5, env="CHAT_HISTORY_TURNS")
    chat_message_max_length: int = Field(500, env="CHAT_MESSAGE_MAX_LENGTH")
    faq_table_path: str | None = Field(None, env="FAQ_TABLE_PATH")
    testing: bool = Field(False, env="TESTING")
    metrics_enabled: bool = Field(True, env="METRICS_ENABLED")
    metrics_token: str | None = Field(None, env="METRICS_TOKEN")

    model_config = SettingsConfigDict(env_file=".env", enable_decoding=False)

    @field_validator("cors_origins_raw", mode="before")
    @classmethod
    def normalize_cors_origins(cls, value: object) -> str | None:
        return cls._normalize_raw_list(value)

    @field_validator("gemini_temperature")
    @classmethod
    def validate_temperature(cls, value: float) -> float:
        if value < 0 or value > 2:
            raise ValueError("gemini_temperature must be between 0 and 2")
        return value

    @field_validator("gemini_top_p")
    @classmethod
    def validate_top_p(cls, value: float) -> float:
        if value <= 0 or value > 1:
            raise ValueError("gemini_top_p must be in (0, 1]")
        return value

    @field_validator(
        "gemini_top_k",
        "gemini_max_output_tokens",
        "chat_message_max_length",
        "rate_limit_max_requests",
        "rate_limit_window_seconds",
    )
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("value must be positive")
        return value

    @field_validator("chat_history_turns")
    @classmethod
    def validate_history_turns(cls, value: int) -> int:
        if value < 0:
            raise ValueError("chat_history_turns must not be negative")
        return value

    @property
    def cors_origins(self) -> list[str]:
        return self._parse_list(self.cors_origins_raw)

    @cors_origins.setter
    def cors_origins(self, value: list[str] | str | None) -> None:
        self.cors_origins_raw = self._normalize_raw_list(value)

    @property
    def gemini_configured(self) -> bool:
        key = (self.gemini_api_key or "").strip()
        return bool(key) and key != GEMINI_PLACEHOLDER_KEY

    @staticmethod
    def _normalize_raw_list(value: object) -> str | None:
        if value is None:
            return None
        if isinstance(value, str):
            return value
        if isinstance(value, list):
            return json.dumps(value)
        return str(value)

    @staticmethod
    def _parse_list(raw: str | None) -> list[str]:
        if raw is None:
            return []
        stripped = raw.strip()
        if not stripped:
            return []
        if stripped.startswith("["):
            parsed = json.loads(stripped)
            if isinstance(parsed, list):
                return [str(entry).strip() for entry in parsed if str(entry).strip()]
            return [str(parsed).strip()] if str(parsed).strip() else []
        entries = [entry.strip() for entry in stripped.split(",")]
        return [entry for entry in entries if entry]


settings = Settings()
