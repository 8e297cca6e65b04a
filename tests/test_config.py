## Unit tests for configuration loading and merging.

import pytest
import yaml

from mpi_hypercube import config as config_utils
from mpi_hypercube.errors import ConfigurationError
from mpi_hypercube.group import GroupContext, check_group_size, parse_dimension


def test_load_single_yaml(tmp_path):
    path = tmp_path / "run.yaml"
    path.write_text(yaml.safe_dump({"dimension": 3, "input_path": "values.txt"}), encoding="utf-8")
    data = config_utils.load_yaml_file(path)
    assert data == {"dimension": 3, "input_path": "values.txt"}


def test_load_rejects_non_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="must be a mapping"):
        config_utils.load_yaml_file(path)


def test_load_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="could not read config"):
        config_utils.load_yaml_file(tmp_path / "absent.yaml")


def test_merge_preserves_base():
    base = {"a": 1, "b": {"c": 2}}
    override = {"b": {"c": 3, "d": 4}, "e": 5}
    merged = config_utils.deep_merge(base, override)
    assert merged == {"a": 1, "b": {"c": 3, "d": 4}, "e": 5}
    assert base == {"a": 1, "b": {"c": 2}}


def test_resolve_files_then_overrides(tmp_path):
    base = tmp_path / "base.yaml"
    base.write_text(yaml.safe_dump({"dimension": 2, "log_level": "info", "max_token_length": 64}), encoding="utf-8")
    local = tmp_path / "local.yaml"
    local.write_text(yaml.safe_dump({"local": True, "dimension": 3}), encoding="utf-8")

    cfg = config_utils.resolve_config([base, local], {"dimension": "4", "input_path": None})

    assert cfg.dimension == "4"  # command line wins
    assert cfg.log_level == "INFO"
    assert cfg.max_token_length == 64
    assert cfg.local is True
    assert cfg.input_path is None


def test_resolve_defaults():
    cfg = config_utils.resolve_config()
    assert cfg.log_level == "WARNING"
    assert cfg.local is False
    assert cfg.group_size is None


def test_resolve_rejects_unknown_keys(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text(yaml.safe_dump({"dimensions": 2}), encoding="utf-8")
    with pytest.raises(ConfigurationError, match="unknown config keys: dimensions"):
        config_utils.resolve_config([path])


def test_resolve_rejects_bad_values():
    with pytest.raises(ConfigurationError, match="unknown log level"):
        config_utils.resolve_config(overrides={"log_level": "chatty"})
    with pytest.raises(ConfigurationError, match="max_token_length"):
        config_utils.resolve_config(overrides={"max_token_length": 0})
    with pytest.raises(ConfigurationError, match="invalid config value"):
        config_utils.resolve_config(overrides={"group_size": "many"})


@pytest.mark.parametrize("text, expected", [("2", 2), ("3", 3), (" 10 ", 10), (4, 4)])
def test_parse_dimension(text, expected):
    assert parse_dimension(text) == expected


@pytest.mark.parametrize("text", [
    "1", "0", "-3", "+3", "abc", "3abc", "2.5", "", True,
    "1_0", "\u0661\u0660", "31", "10000000000", 10 ** 10,
])
def test_parse_dimension_rejects(text):
    with pytest.raises(ConfigurationError, match="invalid dimension"):
        parse_dimension(text)


def test_check_group_size():
    check_group_size(GroupContext(rank=0, size=5), 2)
    check_group_size(GroupContext(rank=3, size=6), 2)
    with pytest.raises(ConfigurationError, match="Got 8 when 9 processes were expected"):
        check_group_size(GroupContext(rank=0, size=8), 3)


def test_check_group_size_with_huge_dimension():
    """The check fails fast instead of building 1 << dimension."""
    with pytest.raises(ConfigurationError, match=r"Got 5 when 1 \+ 2\*\*10000000000"):
        check_group_size(GroupContext(rank=0, size=5), 10_000_000_000)


@pytest.mark.parametrize("group_size", [0, -1])
def test_resolve_rejects_non_positive_group_size(group_size):
    with pytest.raises(ConfigurationError, match="group_size must be positive"):
        config_utils.resolve_config(overrides={"group_size": group_size})
