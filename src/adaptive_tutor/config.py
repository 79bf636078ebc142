"""Application configuration using pydantic-settings."""

import functools
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


def _find_project_root() -> Path:
    """Find project root by locating pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path(__file__).resolve().parent.parent.parent


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from settings.yaml."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        """Not used - we implement __call__ instead."""
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        """Load settings from YAML file."""
        yaml_path = _find_project_root() / "config" / "settings.yaml"
        if not yaml_path.exists():
            return {}

        with open(yaml_path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        # Flatten nested structure to match Settings field names
        flattened = {}
        if 'server' in data:
            flattened['host'] = data['server'].get('host')
            flattened['port'] = data['server'].get('port')
        if 'openai' in data:
            flattened['generation_model'] = data['openai'].get('generation_model')
            flattened['evaluation_model'] = data['openai'].get('evaluation_model')
        if 'history' in data:
            history = data['history']
            flattened['task_history_length'] = history.get('task_types')
            flattened['result_history_length'] = history.get('results')
            flattened['recent_new_words_length'] = history.get('new_words')
            flattened['feedback_history_length'] = history.get('feedback')
            flattened['recent_mistakes_length'] = history.get('mistakes')
        if 'progression' in data:
            progression = data['progression']
            flattened['mastery_threshold'] = progression.get('mastery_threshold')
            flattened['level_up_unlock_threshold'] = progression.get('level_up_unlock_threshold')
            flattened['pre_level_up_threshold'] = progression.get('pre_level_up_threshold')
            flattened['level_up_pass_ratio'] = progression.get('level_up_pass_ratio')

        # Remove None values
        return {k: v for k, v in flattened.items() if v is not None}


class Settings(BaseSettings):
    """Application settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OpenAI (optional: selection and progress tracking work without a backend)
    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    generation_model: str = Field(default="gpt-4o-mini")
    evaluation_model: str = Field(default="gpt-4o-mini")

    # Authentication (optional: None disables auth)
    app_secret: str | None = Field(default=None)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Rolling histories
    task_history_length: int = Field(default=12)
    result_history_length: int = Field(default=100)
    recent_new_words_length: int = Field(default=5)
    feedback_history_length: int = Field(default=20)
    recent_mistakes_length: int = Field(default=10)

    # Progression
    mastery_threshold: int = Field(default=5)
    level_up_unlock_threshold: int = Field(default=80)
    pre_level_up_threshold: int = Field(default=50)
    level_up_pass_ratio: float = Field(default=0.8)

    # Paths
    project_root: Path = Field(default_factory=_find_project_root)

    @property
    def learners_dir(self) -> Path:
        d = self.project_root / "data" / "learners"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings sources to include YAML file.

        Priority order (highest to lowest):
        1. init_settings (arguments passed to Settings())
        2. env_settings (environment variables)
        3. dotenv_settings (.env file)
        4. YamlSettingsSource (settings.yaml)
        5. file_secret_settings
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )


@functools.lru_cache
def get_settings() -> Settings:
    """Get application settings singleton."""
    return Settings()
