from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from lexicard.domain.constants import (
    DATA_FILE_PATH,
    DEFAULT_BRANCH,
    GITHUB_API_URL,
    REQUEST_TIMEOUT,
)

CONFIG_FILES = [
    Path.home() / ".config/lexicard/config.toml",
    Path.home() / ".lexicard.toml",
]


class AppConfig(BaseSettings):
    """
    Configuration model for lexicard.
    Supports loading from:
    1. Environment variables (LEXICARD_*)
    2. Config file (~/.config/lexicard/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="LEXICARD_",
        extra="ignore",
    )

    # Paths
    db_path: Path = Field(
        default_factory=lambda: Path.home() / ".local/share/lexicard/lexicard.db"
    )

    # GitHub sync. Values saved with `lexicard sync configure` take precedence.
    github_token: str | None = None
    github_owner: str | None = None
    github_repo: str | None = None
    github_branch: str = DEFAULT_BRANCH
    github_api_url: str = GITHUB_API_URL
    data_file_path: str = DATA_FILE_PATH
    request_timeout: float = REQUEST_TIMEOUT

    verbose: int = 1

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # First existing file wins; CLI overrides beat env, env beats the file.
        toml_file = next((f for f in CONFIG_FILES if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("db_path", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        return Path(v).expanduser()


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/lexicard/config.toml (if exists)
    3. Environment variables (LEXICARD_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
