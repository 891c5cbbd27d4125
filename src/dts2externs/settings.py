from enum import Enum
from typing import Optional

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)


class OutputStyle(str, Enum):
    """Rendering style for structured entries."""

    OBJ = "obj"
    PROTO = "proto"


class GeneratorSettings(BaseSettings):
    """Options recognized by the externs generator."""

    model_config = SettingsConfigDict(env_prefix="DTS2EXTERNS_")

    add_console: bool = Field(
        default=False,
        description=(
            "If True, a synthetic `console` class with log, info, warn and the other "
            "common methods is added to the output before any file is processed."
        ),
    )
    allow_ts: bool = Field(
        default=False,
        description="If True, non-declaration (.ts) sources are processed as well.",
    )
    parse_all: bool = Field(
        default=False,
        description=(
            "If True, non-exported declarations in non-declaration sources are "
            "processed too. Only meaningful together with `allow_ts`."
        ),
    )
    keep_comments: bool = Field(
        default=False,
        description="If True, documentation comments are emitted before entries and members.",
    )
    list_files: bool = Field(
        default=False, description="If True, every processed file is logged."
    )
    debug: bool = Field(
        default=False,
        description="If True, skipped files and type precedence overwrites are logged.",
    )
    style: OutputStyle = Field(
        default=OutputStyle.OBJ,
        description='Output style for structured entries: "obj" or "proto".',
    )


def load_settings(
    env_prefix: Optional[str] = None,
    env_file: Optional[str] = None,
    toml_file: Optional[str] = None,
    json_file: Optional[str] = None,
    **kwargs,
) -> GeneratorSettings:
    config_dict = SettingsConfigDict(
        env_prefix=env_prefix if env_prefix is not None else "DTS2EXTERNS_",
        env_file=env_file,
        toml_file=toml_file,
        json_file=json_file,
    )

    class Settings(GeneratorSettings):
        model_config = config_dict

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,
            file_secret_settings: PydanticBaseSettingsSource,
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            sources = [init_settings, env_settings, dotenv_settings]
            if toml_file:
                sources.append(TomlConfigSettingsSource(settings_cls))
            if json_file:
                sources.append(JsonConfigSettingsSource(settings_cls))
            sources.append(file_secret_settings)
            return tuple(sources)

    return Settings(**kwargs)
