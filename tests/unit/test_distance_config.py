import pytest

from bhdist.config import DistanceConfig


def test_defaults():
    cfg = DistanceConfig()

    assert cfg.na_char == "X"
    assert cfg.threads == 1
    assert cfg.transposed is False
    assert cfg.dtype == "uint32"
    assert cfg.validate(require_paths=False) == []


def test_from_dict_coerces_strings():
    cfg = DistanceConfig.from_dict(
        {"threads": "4", "transposed": "yes", "show_progress": "off", "output_path": "none"}
    )

    assert cfg.threads == 4
    assert cfg.transposed is True
    assert cfg.show_progress is False
    assert cfg.output_path is None


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(ValueError, match="thread"):
        DistanceConfig.from_dict({"thread": 2})


def test_from_dict_rejects_fractional_threads():
    with pytest.raises(ValueError):
        DistanceConfig.from_dict({"threads": "1.5"})


def test_validate_collects_errors(tmp_path):
    cfg = DistanceConfig(
        input_path=str(tmp_path / "missing.txt"),
        na_char="01",
        threads=-2,
        dtype="float32",
        log_level="LOUD",
    )

    errors = cfg.validate(raise_on_error=False)

    assert len(errors) == 5
    with pytest.raises(ValueError, match="DistanceConfig validation failed"):
        cfg.validate()


def test_validate_requires_input():
    errors = DistanceConfig().validate(raise_on_error=False)

    assert errors == ["input_path is required but missing."]


def test_stdin_input_is_valid():
    assert DistanceConfig(input_path="-").validate() == []


def test_updated_skips_none():
    cfg = DistanceConfig(threads=3, na_char="N").updated(threads=None, na_char="Z", transposed=True)

    assert cfg.threads == 3
    assert cfg.na_char == "Z"
    assert cfg.transposed is True


def test_yaml_round_trip(tmp_path):
    cfg = DistanceConfig(input_path="in.txt", threads=0, transposed=True, na_char="N")
    path = tmp_path / "cfg.yaml"

    cfg.to_yaml(path)
    loaded = DistanceConfig.from_yaml(path)

    assert loaded.input_path == "in.txt"
    assert loaded.threads == 0
    assert loaded.transposed is True
    assert loaded.na_char == "N"
    assert loaded.config_source == str(path)


def test_yaml_must_be_mapping(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text("- a\n- b\n")

    with pytest.raises(ValueError, match="mapping"):
        DistanceConfig.from_yaml(path)


@pytest.mark.parametrize("key", ["threads", "block_bytes"])
def test_from_dict_rejects_non_numeric_integers(key):
    with pytest.raises(ValueError, match=f"{key} must be an integer, got 'four'"):
        DistanceConfig.from_dict({key: "four", "input_path": "-"})


def test_from_dict_blank_integer_keeps_default():
    assert DistanceConfig.from_dict({"threads": "none"}).threads == 1
