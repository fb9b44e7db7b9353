"""Unit tests for verborum.config: Settings and the YAML loader."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from verborum.config.loader import _deep_merge, load_config
from verborum.config.settings import Settings
from verborum.utils.errors import ConfigurationError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run every test in an empty directory with no SVL_* variables set."""
    monkeypatch.chdir(tmp_path)
    for name in ("SVL_DB_PATH", "SVL_MAX_CONCURRENT_REQUESTS", "SVL_ORDERED_FOLD", "APP_ENV", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.max_concurrent_requests == 10
        assert settings.db_path == "data/svl-stats.db"
        assert settings.ordered_fold is False
        assert settings.app_env == "development"

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SVL_DB_PATH", "/tmp/other.db")
        monkeypatch.setenv("SVL_MAX_CONCURRENT_REQUESTS", "4")
        monkeypatch.setenv("SVL_ORDERED_FOLD", "true")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        settings = Settings()
        assert settings.db_path == "/tmp/other.db"
        assert settings.max_concurrent_requests == 4
        assert settings.ordered_fold is True
        assert settings.log_level == "DEBUG"

    def test_dotenv_file(self, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text("SVL_PERSIST_BATCH_SIZE=50\n", encoding="utf-8")
        assert Settings().persist_batch_size == 50

    def test_concurrency_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            Settings(max_concurrent_requests=0)

    def test_construct_by_field_name(self) -> None:
        assert Settings(log_level="WARNING").log_level == "WARNING"


class TestLoadConfig:
    def test_missing_file_uses_settings(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=Settings(db_path="x.db"))
        assert config["storage"]["db_path"] == "x.db"
        assert config["fetch"]["max_concurrent_requests"] == 10
        assert config["tokenizer"]["mode"] == "strict"

    def test_settings_override_yaml_and_keep_other_keys(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "storage:\n  db_path: yaml.db\n  batch_size: 100\n"
            "tokenizer:\n  denylist: [br, p]\n"
            "query:\n  default_limit: 10\n"
            "fetch:\n  max_concurrent_requests: 3\n",
            encoding="utf-8",
        )
        config = load_config(str(path), settings=Settings(db_path="env.db"))
        assert config["storage"]["db_path"] == "env.db"
        assert config["storage"]["batch_size"] == 100
        assert config["fetch"]["max_concurrent_requests"] == 3
        assert config["fetch"]["timeout"] == 30.0
        assert config["tokenizer"]["denylist"] == ["br", "p"]
        assert config["query"]["default_limit"] == 10

    def test_environment_beats_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "fetch:\n  max_concurrent_requests: 3\naggregation:\n  ordered_fold: true\n",
            encoding="utf-8",
        )
        monkeypatch.setenv("SVL_MAX_CONCURRENT_REQUESTS", "7")
        config = load_config(str(path), settings=Settings())
        assert config["fetch"]["max_concurrent_requests"] == 7
        assert config["aggregation"]["ordered_fold"] is True

    def test_yaml_beats_settings_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("storage:\n  db_path: yaml.db\ntokenizer:\n  mode: whitespace\n", encoding="utf-8")
        config = load_config(str(path), settings=Settings())
        assert config["storage"]["db_path"] == "yaml.db"
        assert config["tokenizer"]["mode"] == "whitespace"
        assert config["storage"]["batch_size"] == 500

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("storage: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config(str(path), settings=Settings())

    def test_top_level_must_be_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config(str(path), settings=Settings())

    def test_shipped_config_loads(self) -> None:
        shipped = Path(__file__).resolve().parents[2] / "config" / "config.yaml"
        config = load_config(str(shipped), settings=Settings())
        assert config["corpus"]["index_url"].startswith("https://")
        assert config["tokenizer"]["denylist"] == ["br", "p", "hrefa", "nbsp"]


def test_deep_merge_is_recursive() -> None:
    base = {"a": {"b": 1, "c": 2}, "d": 3}
    _deep_merge(base, {"a": {"b": 10}, "e": 4})
    assert base == {"a": {"b": 10, "c": 2}, "d": 3, "e": 4}
