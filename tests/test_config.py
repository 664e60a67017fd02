import json
import logging

import pytest

from mandelbrot import ConfigurationError, RenderConfig, default_config, load_config


def test_defaults():
    config = RenderConfig()
    assert config.max_iter == 500
    assert config.palette == "Hot"
    assert config.tile_size == 64
    assert config.worker_count >= 1
    assert config.escape_radius == 2.0
    assert config.smooth
    vp = config.initial_viewport()
    assert vp.center == complex(-0.75, 0.0)
    assert vp.size == (800, 800)
    assert vp.bounds[0] == pytest.approx(-2.5)
    assert vp.bounds[1] == pytest.approx(1.0)


@pytest.mark.parametrize("overrides", [
    dict(max_iter=0),
    dict(max_iter=-5),
    dict(palette="Sepia"),
    dict(tile_size=0),
    dict(worker_count=0),
    dict(escape_radius=1.5),
    dict(precision="quad"),
    dict(width=0),
    dict(scale=0.0),
    dict(extended_dps=0),
])
def test_invalid_settings_rejected(overrides):
    with pytest.raises(ConfigurationError):
        default_config(**overrides)


def test_unknown_setting_rejected():
    with pytest.raises(ConfigurationError, match="colour"):
        default_config(colour="red")


def test_default_config_ignores_unset_overrides():
    config = default_config(max_iter=None, palette="Ocean")
    assert config.max_iter == 500
    assert config.palette == "Ocean"


def test_load_json_with_camel_case_names(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({
        "maxIterations": 250,
        "paletteName": "Rainbow",
        "tileSize": 32,
        "workerCount": 3,
        "center": [-0.743, 0.131],
        "smooth": False,
    }))
    config = load_config(path)
    assert config.max_iter == 250
    assert config.palette == "Rainbow"
    assert config.tile_size == 32
    assert config.worker_count == 3
    assert config.center == (-0.743, 0.131)
    assert not config.smooth


def test_overrides_win_over_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"max_iter": 250, "palette": "Forest"}))
    config = load_config(path, max_iter=900)
    assert config.max_iter == 900
    assert config.palette == "Forest"


def test_missing_file_falls_back_to_defaults(tmp_path, caplog):
    with caplog.at_level(logging.WARNING, logger="mandelbrot.config"):
        config = load_config(tmp_path / "absent.json")
    assert config == default_config(worker_count=config.worker_count)
    assert "Could not load settings" in caplog.text


def test_invalid_values_in_file_are_errors(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"maxIterations": "lots"}))
    with pytest.raises(ConfigurationError):
        load_config(path)

    path.write_text(json.dumps([1, 2, 3]))
    with pytest.raises(ConfigurationError):
        load_config(path)

    path.write_text(json.dumps({"center": [1.0]}))
    with pytest.raises(ConfigurationError):
        load_config(path)


@pytest.mark.parametrize("settings", [
    {"scale": "0.01"},
    {"escape_radius": "3"},
    {"escape_radius": True},
    {"palette": ["Hot"]},
    {"precision": 2},
    {"smooth": "false"},
    {"smooth": 0},
    {"center": ["-0.75", "lots"]},
    {"center": [None, 0.0]},
    {"width": float("inf")},
])
def test_wrongly_typed_values_in_file_are_errors(tmp_path, settings):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(settings))
    with pytest.raises(ConfigurationError):
        load_config(path)


def test_unreadable_file_falls_back_to_defaults(tmp_path, caplog):
    binary = tmp_path / "settings.json"
    binary.write_bytes(b"\xff\xfe\x00garbage")
    with caplog.at_level(logging.WARNING, logger="mandelbrot.config"):
        from_directory = load_config(tmp_path)
        from_binary = load_config(binary)
    assert from_directory.max_iter == 500
    assert from_binary.palette == "Hot"
    assert caplog.text.count("Could not load settings") == 2


def test_extended_centre_keeps_every_digit(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({
        "precision": "extended",
        "center": ["-0.7436438870371587522", "0.1318259042053119"],
        "scale": 1e-18,
    }))
    config = load_config(path)
    assert config.center == ("-0.7436438870371587522", "0.1318259042053119")
    vp = config.initial_viewport()
    assert str(vp.center_real).startswith("-0.7436438870371587522")
    assert str(vp.center_imag).startswith("0.1318259042053119")
