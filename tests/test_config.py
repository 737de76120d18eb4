from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from where_is import load_config
from where_is.config import FinderConfig, PredicateConfig, PredicateKind


def test_load_config_from_json(tmp_path) -> None:
    config_path = tmp_path / "finder.json"
    config_path.write_text(
        json.dumps(
            {
                "root": str(tmp_path),
                "follow_links": True,
                "max_depth": 3,
                "predicates": [{"kind": "name_glob", "value": "*.rs"}],
            }
        ),
        encoding="utf-8",
    )

    config = load_config(config_path)

    assert config.root == tmp_path
    assert config.follow_links is True
    assert config.yield_root is False
    assert config.max_depth == 3
    assert config.predicates[0].kind is PredicateKind.NAME_GLOB


def test_load_config_from_yaml(tmp_path) -> None:
    config_path = tmp_path / "finder.yaml"
    config_path.write_text(
        "\n".join(
            [
                "sort_by_name: true",
                "min_depth: 1",
                "predicates:",
                "  - kind: extension",
                "    value: toml",
                "  - kind: is_dir",
                "    value: false",
            ]
        ),
        encoding="utf-8",
    )

    config = load_config(config_path)

    assert config.root is None
    assert config.sort_by_name is True
    assert config.min_depth == 1
    assert [predicate.kind for predicate in config.predicates] == [
        PredicateKind.EXTENSION,
        PredicateKind.IS_DIR,
    ]
    assert config.predicates[1].value is False


def test_load_config_rejects_unknown_keys(tmp_path) -> None:
    config_path = tmp_path / "finder.json"
    config_path.write_text(json.dumps({"roots": ["/tmp"]}), encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid configuration"):
        load_config(config_path)


def test_load_config_rejects_non_object(tmp_path) -> None:
    config_path = tmp_path / "finder.json"
    config_path.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(ValueError, match="must be an object"):
        load_config(config_path)


def test_depth_bounds_validated() -> None:
    with pytest.raises(ValidationError):
        FinderConfig(min_depth=2, max_depth=1)
    with pytest.raises(ValidationError):
        FinderConfig(min_depth=-1)


@pytest.mark.parametrize(
    "payload",
    [
        {"kind": "is_dir", "value": "yes"},
        {"kind": "name_glob", "value": "   "},
        {"kind": "extension", "value": True},
        {"kind": "kind", "value": "socket"},
        {"kind": "regex", "value": ".*"},
    ],
)
def test_predicate_config_rejects_bad_values(payload) -> None:
    with pytest.raises(ValidationError):
        PredicateConfig.model_validate(payload)


def test_predicate_config_strips_string_values() -> None:
    config = PredicateConfig(kind=PredicateKind.NAME, value="  main.rs ")

    assert config.value == "main.rs"


def test_load_config_rejects_yaml_list(tmp_path) -> None:
    config_path = tmp_path / "finder.yaml"
    config_path.write_text("- kind: name\n  value: a.txt\n", encoding="utf-8")

    with pytest.raises(ValueError, match="must be an object"):
        load_config(config_path)


def test_load_config_rejects_unparseable_text(tmp_path) -> None:
    config_path = tmp_path / "finder.yaml"
    config_path.write_text("predicates: [unclosed\n", encoding="utf-8")

    with pytest.raises(ValueError, match="neither JSON nor YAML"):
        load_config(config_path)
