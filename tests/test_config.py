import json
from pathlib import Path

import pytest

from iacguard.config.loader import convert_keys, convert_to_camel, get_config_path, load_config, save_config
from iacguard.config.schema import ChecksConfig, Config


def test_defaults() -> None:
    cfg = Config()
    assert cfg.enabled is True
    assert cfg.log_level == "WARNING"
    assert cfg.checks.disabled == []
    assert cfg.checks.rules_file is None
    assert cfg.scan.max_depth == 3


def test_missing_config_file_uses_defaults(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "absent.json")
    assert cfg == Config()


def test_camel_case_file_is_loaded(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "logLevel": "DEBUG",
                "checks": {"disabled": ["K8S_NO_PROBES"], "terraformFmt": False, "rulesPath": "~/rules.json"},
                "scan": {"maxFileBytes": 1024},
            }
        )
    )
    cfg = load_config(path)
    assert cfg.log_level == "DEBUG"
    assert cfg.checks.disabled == ["K8S_NO_PROBES"]
    assert cfg.checks.terraform_fmt is False
    assert cfg.checks.rules_file == Path("~/rules.json").expanduser()
    assert cfg.scan.max_file_bytes == 1024
    assert cfg.scan.max_depth == 3


def test_invalid_config_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{broken")
    assert load_config(path) == Config()

    path.write_text(json.dumps({"scan": {"maxDepth": -1}}))
    assert load_config(path) == Config()

    path.write_text("[]")
    assert load_config(path) == Config()


def test_save_config_writes_camel_case(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "config.json"
    cfg = Config(log_level="INFO", checks=ChecksConfig(disabled=["TF_MISSING_TAGS"]))
    assert save_config(cfg, path) == path

    data = json.loads(path.read_text())
    assert data["logLevel"] == "INFO"
    assert data["checks"]["terraformFmtTimeoutS"] == 10
    assert data["scan"]["maxFileBytes"] == 2 * 1024 * 1024
    assert load_config(path) == cfg


def test_key_conversion() -> None:
    assert convert_keys({"maxFileBytes": 1, "checks": [{"rulesPath": "x"}]}) == {
        "max_file_bytes": 1,
        "checks": [{"rules_path": "x"}],
    }
    assert convert_to_camel({"terraform_fmt_timeout_s": 3}) == {"terraformFmtTimeoutS": 3}


def test_config_path_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("IACGUARD_CONFIG", str(tmp_path / "alt.json"))
    assert get_config_path() == tmp_path / "alt.json"

    monkeypatch.delenv("IACGUARD_CONFIG")
    monkeypatch.setenv("HOME", str(tmp_path))
    assert get_config_path() == tmp_path / ".iacguard" / "config.json"


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("IACGUARD_LOG_LEVEL", "ERROR")
    monkeypatch.setenv("IACGUARD_SCAN__MAX_DEPTH", "5")
    cfg = Config()
    assert cfg.log_level == "ERROR"
    assert cfg.scan.max_depth == 5
