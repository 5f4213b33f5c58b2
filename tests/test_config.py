from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from insights_webui.config import (
    CONFIG_FILE_ENV,
    WebUIConfig,
    load_webui_config,
    parse_address,
    resolve_config_path,
)
from insights_webui.errors import ConfigError


def test_load_toml_config(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text(
        '[backend]\ncontroller_url = "http://localhost:8080/"\n\n'
        '[server]\naddress = ":8081"\n\n'
        '[logging]\nlevel = "debug"\n',
        encoding="utf-8",
    )

    cfg = load_webui_config(path)
    assert cfg.backend.controller_url == "http://localhost:8080/"
    assert cfg.backend.base_url == "http://localhost:8080"
    assert cfg.backend.timeout_seconds == 30.0
    assert cfg.server.address == ":8081"
    assert cfg.logging.level == "DEBUG"
    assert cfg.ui.html_dir is None


def test_load_flat_json_config(tmp_path: Path) -> None:
    path = tmp_path / "webui.json"
    path.write_text(
        json.dumps({"controller_url": "http://ctrl:9000", "address": "127.0.0.1:3000"}),
        encoding="utf-8",
    )

    cfg = load_webui_config(path)
    assert cfg.backend.controller_url == "http://ctrl:9000"
    assert cfg.server.address == "127.0.0.1:3000"


def test_missing_config_file_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_webui_config(tmp_path / "nope.toml")


def test_unparsable_config_file_is_fatal(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("controller_url = [unterminated", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_webui_config(path)


def test_config_validation_error_is_fatal(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"address": ":8081"}), encoding="utf-8")

    with pytest.raises(ConfigError):
        load_webui_config(path)


def test_unknown_log_level_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {"controller_url": "http://c", "address": ":1", "logging": {"level": "chatty"}}
        ),
        encoding="utf-8",
    )

    with pytest.raises(ConfigError):
        load_webui_config(path)


def test_config_is_frozen() -> None:
    cfg = WebUIConfig.model_validate({"controller_url": "http://c", "address": ":1"})
    with pytest.raises(ValidationError):
        cfg.backend.controller_url = "http://elsewhere"


def test_resolve_config_path_prefers_env(tmp_path: Path) -> None:
    custom = tmp_path / "custom.toml"
    resolved = resolve_config_path({CONFIG_FILE_ENV: str(custom)}, cwd=tmp_path)
    assert resolved == custom


def test_resolve_config_path_discovers_default_names(tmp_path: Path) -> None:
    assert resolve_config_path({}, cwd=tmp_path) == tmp_path / "config.toml"

    (tmp_path / "config.json").write_text("{}", encoding="utf-8")
    assert resolve_config_path({}, cwd=tmp_path) == tmp_path / "config.json"

    (tmp_path / "config.toml").write_text("", encoding="utf-8")
    assert resolve_config_path({}, cwd=tmp_path) == tmp_path / "config.toml"


def test_load_uses_env_variable(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "other.json"
    path.write_text(
        json.dumps({"backend": {"controller_url": "http://env"}, "server": {"address": ":2"}}),
        encoding="utf-8",
    )
    monkeypatch.setenv(CONFIG_FILE_ENV, str(path))

    cfg = load_webui_config()
    assert cfg.backend.controller_url == "http://env"


@pytest.mark.parametrize(
    ("address", "expected"),
    [
        (":8081", ("0.0.0.0", 8081)),
        ("localhost:3000", ("localhost", 3000)),
        ("[::1]:8080", ("::1", 8080)),
    ],
)
def test_parse_address(address: str, expected: tuple[str, int]) -> None:
    assert parse_address(address) == expected


@pytest.mark.parametrize("address", ["8081", "host:port", "host:70000"])
def test_parse_address_rejects_garbage(address: str) -> None:
    with pytest.raises(ConfigError):
        parse_address(address)
