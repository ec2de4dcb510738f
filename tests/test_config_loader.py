"""Import configuration loading tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from bundleport.config import MAVEN_CENTRAL, ImportConfig
from bundleport.runtime.config_loader import load_import_config


def test_defaults() -> None:
    config = load_import_config(None)

    assert config == ImportConfig.default()
    assert config.import_transitive is False
    assert config.test_metadata is True
    assert config.provision_id == "provision"
    assert [repo.url for repo in config.repositories] == [MAVEN_CENTRAL]
    assert config.local_repository == Path.home() / ".m2" / "repository"


def test_toml_file_with_tool_table(tmp_path: Path) -> None:
    path = tmp_path / "bundleport.toml"
    path.write_text(
        """
[tool.bundleport]
import_transitive = true
exclusions = ["org.example:baz"]
local_repository = "~/custom-repo"

[[tool.bundleport.repositories]]
id = "internal"
url = "https://repo.example.org/maven2/"
""",
        encoding="utf-8",
    )

    config = load_import_config(path)

    assert config.import_transitive is True
    assert config.exclusions == ["org.example:baz"]
    assert config.local_repository == Path.home() / "custom-repo"
    assert config.repositories[0].id == "internal"
    assert config.repositories[0].url == "https://repo.example.org/maven2"


def test_json_file_and_inline_strings(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"deploy": False}), encoding="utf-8")

    assert load_import_config(path).deploy is False
    assert load_import_config('{"overwrite": false}').overwrite is False
    assert load_import_config("widen_scope = true").widen_scope is True
    assert load_import_config({"bundleport": {"offline": True}}).offline is True


def test_invalid_sources(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        load_import_config("{not json")
    with pytest.raises(ValueError):
        load_import_config("[1, 2]")
    with pytest.raises(TypeError):
        load_import_config(42)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "data",
    [
        {"repositories": [{"url": "ftp://repo.example.org"}]},
        {"system_bundles": ["no-colon"]},
        {"download_timeout": 0},
        {"unknown_field": 1, "repositories": [{"url": MAVEN_CENTRAL, "extra": 1}]},
    ],
)
def test_validation_errors(data: dict) -> None:
    with pytest.raises(ValidationError):
        load_import_config(data)
