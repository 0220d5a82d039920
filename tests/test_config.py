import os
from pathlib import Path

import pytest

from sqlfind.core.config import ENV_PREFIX, SearchSettings, load_config
from sqlfind.core.errors import ConfigError
from sqlfind.core.objects import ObjectType, ScriptAction

_CONFIG = """\
[DEFAULT]
server = db.example.com
user = reader
password = secret
database = Shop

[staging]
server = staging.example.com
port = 14330
database = ShopStaging
include_table_columns = yes
script_row_limit = 50
action_table = Insert Name
action_stored_procedure = execute
"""


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in list(os.environ):
        if key.upper().startswith(ENV_PREFIX):
            monkeypatch.delenv(key)


def _write(tmp_path: Path, text: str = _CONFIG) -> Path:
    path = tmp_path / "sqlfindcfg"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_config_reads_default_profile(tmp_path: Path):
    profile, settings = load_config(path=_write(tmp_path))

    assert profile.name == "DEFAULT"
    assert profile.server == "db.example.com"
    assert profile.port == 1433
    assert profile.user == "reader"
    assert profile.database == "Shop"
    assert profile.identity == "DEFAULT@db.example.com:1433"
    assert settings.include_table_columns is False
    assert settings.script_row_limit == 1000
    assert settings.action_for_type(ObjectType.TABLE) is ScriptAction.SELECT
    assert settings.action_for_type(ObjectType.STORED_PROCEDURE) is ScriptAction.ALTER
    assert settings.action_for_type(ObjectType.SCALAR_FUNCTION) is ScriptAction.ALTER


def test_load_config_named_profile_inherits_defaults(tmp_path: Path):
    profile, settings = load_config("staging", path=_write(tmp_path))

    assert profile.server == "staging.example.com"
    assert profile.port == 14330
    assert profile.user == "reader"
    assert profile.database == "ShopStaging"
    assert settings.include_table_columns is True
    assert settings.script_row_limit == 50
    assert settings.action_for_type(ObjectType.TABLE) is ScriptAction.INSERT_NAME
    assert settings.action_for_type(ObjectType.STORED_PROCEDURE) is ScriptAction.EXECUTE
    assert settings.action_for_type(ObjectType.VIEW) is ScriptAction.SELECT


def test_environment_overrides_settings(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("SQLFIND_INCLUDE_TABLE_COLUMNS", "false")
    monkeypatch.setenv("SQLFIND_SCRIPT_ROW_LIMIT", "10")
    monkeypatch.setenv("SQLFIND_ACTION_VIEW", "create")

    _, settings = load_config("staging", path=_write(tmp_path))

    assert settings.include_table_columns is False
    assert settings.script_row_limit == 10
    assert settings.action_for_type(ObjectType.VIEW) is ScriptAction.CREATE


def test_profile_section_beats_environment(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("SQLFIND_SERVER", "ignored.example.com")
    path = _write(tmp_path, "[local]\nserver = localhost\npassword =\n")

    profile, _ = load_config("local", path=path)

    assert profile.server == "localhost"
    assert profile.password is None


def test_environment_supplies_password_left_out_of_the_file(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("SQLFIND_PASSWORD", "from-env")
    path = _write(tmp_path, "[local]\nserver = localhost\n")

    profile, _ = load_config("local", path=path)

    assert profile.password == "from-env"


def test_missing_file_raises_config_error(tmp_path: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(path=tmp_path / "missing")


def test_missing_profile_raises_config_error(tmp_path: Path):
    with pytest.raises(ConfigError, match="Profile 'prod' not found"):
        load_config("prod", path=_write(tmp_path))


def test_profile_without_server_raises_config_error(tmp_path: Path):
    path = _write(tmp_path, "[local]\ndatabase = Shop\n")
    with pytest.raises(ConfigError, match="profile 'local'.*server"):
        load_config("local", path=path)


@pytest.mark.parametrize(
    ("line", "field"),
    [
        ("port = abc", "port"),
        ("port = 0", "port"),
        ("script_row_limit = 0", "script_row_limit"),
        ("include_table_columns = maybe", "include_table_columns"),
        ("action_view = Truncate", "action_view"),
    ],
)
def test_invalid_values_raise_config_error(tmp_path: Path, line: str, field: str):
    path = _write(tmp_path, f"[local]\nserver = localhost\n{line}\n")
    with pytest.raises(ConfigError, match=f"Invalid configuration in profile 'local': {field}"):
        load_config("local", path=path)


def test_with_overrides_only_replaces_given_values():
    settings = SearchSettings(include_table_columns=True, script_row_limit=25)

    assert settings.with_overrides() is settings
    assert settings.with_overrides(script_row_limit=5).script_row_limit == 5
    assert settings.with_overrides(script_row_limit=5).include_table_columns is True
    assert settings.with_overrides(include_table_columns=False).include_table_columns is False
    with pytest.raises(ConfigError, match="script_row_limit"):
        settings.with_overrides(script_row_limit=0)


def test_command_line_overrides_beat_environment(monkeypatch):
    monkeypatch.setenv("SQLFIND_SCRIPT_ROW_LIMIT", "10")
    settings = SearchSettings()

    assert settings.script_row_limit == 10
    assert settings.with_overrides(script_row_limit=3).script_row_limit == 3
