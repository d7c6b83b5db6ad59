from pathlib import Path
from typing import Optional

from pydantic import PrivateAttr
from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    app_name: str = "Lender Match Chat API"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3005

    catalog_path: str = str(BASE_DIR / "data" / "lender_catalog.json")

    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_temperature: float = 0.4
    openai_max_tokens: int = 1000

    # One timeout budget per collaborator call, retried with linear backoff
    llm_timeout_seconds: float = 25.0
    collaborator_max_retries: int = 2
    collaborator_retry_delay_seconds: float = 1.0

    property_insights_url: Optional[str] = None
    property_insights_api_key: Optional[str] = None

    match_limit: int = 8
    match_threshold: float = 0.6
    inclusion_floor: float = 0.1
    base_confidence: float = 0.25
    conversation_history_limit: int = 20

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    _llm_enabled: bool = PrivateAttr(default=False)
    _insights_enabled: bool = PrivateAttr(default=False)

    def model_post_init(self, __context: object) -> None:
        object.__setattr__(self, "_llm_enabled", bool(self.openai_api_key))
        object.__setattr__(self, "_insights_enabled", bool(self.property_insights_url))

    @property
    def llm_enabled(self) -> bool:
        return self._llm_enabled

    @property
    def insights_enabled(self) -> bool:
        return self._insights_enabled


settings = Settings()
