"""Engine settings loaded from environment variables."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Context engine configuration. All values come from environment variables."""

    # Database
    database_path: Path = Field(default=Path("data/context.db"))

    # Turso (hosted libSQL); overrides local database_path when set
    turso_database_url: str = Field(default="")
    turso_auth_token: str = Field(default="")

    # Web search
    search_provider: str = Field(default="google")
    google_search_api_key: str = Field(default="")
    google_search_engine_id: str = Field(default="")
    brave_search_api_key: str = Field(default="")
    search_timeout: float = Field(default=20.0)
    page_fetch_timeout: float = Field(default=5.0)
    web_result_count: int = Field(default=4)
    enrich_top_results: int = Field(default=2)

    # Context window
    recent_message_limit: int = Field(default=5)
    top_concept_limit: int = Field(default=10)
    related_message_limit: int = Field(default=3)
    related_snippet_chars: int = Field(default=300)

    # Locale used for query enhancement and date rendering
    target_locale: str = Field(default="India")
    locale_aliases: str = Field(default="india,indian")
    date_format: str = Field(default="%d/%m/%Y")

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    def get_locale_aliases(self) -> list[str]:
        """Parse LOCALE_ALIASES into a list of lowercase names.

        The target locale itself is always included.
        """
        aliases = [a.strip().lower() for a in self.locale_aliases.split(",") if a.strip()]
        locale = self.target_locale.strip().lower()
        if locale and locale not in aliases:
            aliases.insert(0, locale)
        return aliases


settings = Settings()
