"""Configuration loading for sqlfind.

Connection profiles and search settings live in an INI file modelled after
`~/.databrickscfg`: every section is a named profile and `[DEFAULT]` supplies
fallback values. The section is handed to pydantic-settings models, which
coerce and validate the values and merge `SQLFIND_*` environment variables.
Configuration problems raise ConfigError; they are the only errors allowed to
stop the tool.
"""

from __future__ import annotations

import configparser
import os
from pathlib import Path
from typing import Any, Mapping

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sqlfind.core.errors import ConfigError
from sqlfind.core.objects import ObjectType, ScriptAction

CONFIG_FILE_ENV = "SQLFIND_CONFIG_FILE"
ENV_PREFIX = "SQLFIND_"

DEFAULT_PROFILE = "DEFAULT"
DEFAULT_PORT = 1433
DEFAULT_ROW_LIMIT = 1000

# Settings field holding the action for each object type
_ACTION_FIELDS: dict[ObjectType, str] = {
    ObjectType.TABLE: "action_table",
    ObjectType.VIEW: "action_view",
    ObjectType.STORED_PROCEDURE: "action_stored_procedure",
    ObjectType.SCALAR_FUNCTION: "action_function",
    ObjectType.TABLE_VALUED_FUNCTION: "action_function",
    ObjectType.SYNONYM: "action_synonym",
}


class ConnectionProfile(BaseSettings):
    """
    Connection parameters for one SQL Server profile.

    Values from the profile section win; `SQLFIND_<FIELD>` environment
    variables only fill what the section leaves out (e.g. `SQLFIND_PASSWORD`).
    """

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, extra="ignore", frozen=True)

    name: str
    server: str = Field(min_length=1)
    port: int = Field(DEFAULT_PORT, gt=0)
    user: str | None = None
    password: str | None = None
    database: str | None = None
    login_timeout: int = Field(15, gt=0)
    timeout: int = Field(60, gt=0)

    @field_validator("user", "password", "database", mode="before")
    @classmethod
    def _blank_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def identity(self) -> str:
        """Stable identity of the logical connection, independent of the database."""
        return f"{self.name}@{self.server}:{self.port}"


class SearchSettings(BaseSettings):
    """
    Read-only search and scripting settings.

    `SQLFIND_<FIELD>` environment variables override the profile section.
    """

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, extra="ignore", frozen=True)

    include_table_columns: bool = False
    script_row_limit: int = Field(DEFAULT_ROW_LIMIT, gt=0)
    action_table: ScriptAction = ScriptAction.SELECT
    action_view: ScriptAction = ScriptAction.SELECT
    action_stored_procedure: ScriptAction = ScriptAction.ALTER
    action_function: ScriptAction = ScriptAction.ALTER
    action_synonym: ScriptAction = ScriptAction.SELECT

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return env_settings, init_settings

    @field_validator(*sorted(set(_ACTION_FIELDS.values())), mode="before")
    @classmethod
    def _parse_action(cls, value: Any) -> Any:
        if isinstance(value, str):
            return ScriptAction.parse(value)
        return value

    def action_for_type(self, object_type: ObjectType) -> ScriptAction:
        """Return the action configured for an object type."""
        field_name = _ACTION_FIELDS.get(object_type)
        if field_name is None:
            return ScriptAction.SELECT
        return getattr(self, field_name)

    def with_overrides(
        self,
        *,
        include_table_columns: bool | None = None,
        script_row_limit: int | None = None,
    ) -> SearchSettings:
        """Return a copy with CLI-level overrides applied (they beat the environment)."""
        updates: dict[str, Any] = {}
        if include_table_columns is not None:
            updates["include_table_columns"] = include_table_columns
        if script_row_limit is not None:
            updates["script_row_limit"] = script_row_limit
        if not updates:
            return self
        try:
            # model_validate skips the settings sources, so env is not re-read
            return type(self).model_validate({**self.model_dump(), **updates})
        except ValidationError as exc:
            raise ConfigError(_describe_validation(exc, "command line")) from exc


def _describe_validation(exc: ValidationError, where: str) -> str:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'value'}: {err['msg']}"
        for err in exc.errors()
    )
    return f"Invalid configuration in {where}: {problems}"


def config_path() -> Path:
    """Return the profile file path, honoring env override."""
    raw = os.getenv(CONFIG_FILE_ENV)
    if raw:
        return Path(raw).expanduser()
    return Path.home() / ".sqlfindcfg"


def _read_parser(path: Path) -> configparser.ConfigParser:
    if not path.exists():
        raise ConfigError(
            f"Configuration file not found: {path}. "
            f"Create it or point {CONFIG_FILE_ENV} at an existing file."
        )
    parser = configparser.ConfigParser(interpolation=None)
    try:
        parser.read(path, encoding="utf-8")
    except configparser.Error as exc:
        raise ConfigError(f"Could not parse {path}: {exc}") from exc
    return parser


def _section(parser: configparser.ConfigParser, profile: str) -> dict[str, str]:
    if profile == DEFAULT_PROFILE:
        return dict(parser.defaults())
    if not parser.has_section(profile):
        raise ConfigError(f"Profile '{profile}' not found in configuration.")
    return dict(parser[profile])


def parse_profile(section: Mapping[str, Any], name: str) -> ConnectionProfile:
    """Build a ConnectionProfile from a config section."""
    try:
        return ConnectionProfile(**{**section, "name": name})
    except ValidationError as exc:
        raise ConfigError(_describe_validation(exc, f"profile '{name}'")) from exc


def parse_settings(section: Mapping[str, Any], name: str = DEFAULT_PROFILE) -> SearchSettings:
    """Build SearchSettings from a config section plus environment overrides."""
    try:
        return SearchSettings(**section)
    except ValidationError as exc:
        raise ConfigError(_describe_validation(exc, f"profile '{name}'")) from exc


def load_config(
    profile: str | None = None,
    *,
    path: Path | None = None,
) -> tuple[ConnectionProfile, SearchSettings]:
    """
    Load a connection profile and its search settings.

    Args:
        profile: Profile (section) name; `DEFAULT` when omitted.
        path: Config file to read; resolved via `config_path()` when omitted.

    Raises:
        ConfigError: If the file, the profile or a required value is missing
            or invalid.
    """
    name = profile or DEFAULT_PROFILE
    parser = _read_parser(path or config_path())
    section = _section(parser, name)
    return parse_profile(section, name), parse_settings(section, name)
