from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from spacedeck.domain.constants import (
    DEFAULT_EASY_BONUS_MULTIPLIER,
    DEFAULT_FIRST_STEP_MINUTES,
    DEFAULT_LAPSE_INTERVAL_MINUTES,
    DEFAULT_SECOND_STEP_MINUTES,
    DEFAULT_STARTING_EASE_FACTOR,
    ENV_PREFIX,
    MIN_EASE_FACTOR,
)
from spacedeck.domain.scheduling.models import SchedulingPolicy


def config_files() -> list[Path]:
    return [
        Path.home() / ".config/spacedeck/config.toml",
        Path.home() / ".spacedeck.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for spacedeck.
    Supports loading from:
    1. Environment variables (SPACEDECK_*)
    2. Config file (~/.config/spacedeck/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        extra="ignore",
    )

    # Paths
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".config/spacedeck/logs")

    # Baseline policy applied to users without an override
    lapse_interval_minutes: int = Field(default=DEFAULT_LAPSE_INTERVAL_MINUTES, gt=0)
    first_step_minutes: int = Field(default=DEFAULT_FIRST_STEP_MINUTES, gt=0)
    second_step_minutes: int = Field(default=DEFAULT_SECOND_STEP_MINUTES, gt=0)
    easy_bonus_multiplier: float = Field(
        default=DEFAULT_EASY_BONUS_MULTIPLIER, ge=1.0, allow_inf_nan=False
    )
    starting_ease_factor: float = Field(
        default=DEFAULT_STARTING_EASE_FACTOR, ge=MIN_EASE_FACTOR, allow_inf_nan=False
    )

    # Output
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

        # First existing file wins; CLI overrides beat env beat file
        toml_file = next((f for f in config_files() if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("log_dir", mode="before")
    @classmethod
    def resolve_log_dir(cls, v: Any) -> Path:
        return Path(v).expanduser()

    def default_policy(self) -> SchedulingPolicy:
        return SchedulingPolicy(
            lapse_interval_minutes=self.lapse_interval_minutes,
            first_step_minutes=self.first_step_minutes,
            second_step_minutes=self.second_step_minutes,
            easy_bonus_multiplier=self.easy_bonus_multiplier,
            starting_ease_factor=self.starting_ease_factor,
        )


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/spacedeck/config.toml (if exists)
    3. Environment variables (SPACEDECK_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
