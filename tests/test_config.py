import pytest

from vehicle_tracker.tracking.tracker import TrackerConfig
from vehicle_tracker.utils.config import get, load_yaml


def test_load_yaml_and_dot_access(tmp_path):
    path = tmp_path / "tracker.yaml"
    path.write_text(
        "tracking:\n"
        "  invisibility_threshold: 20\n"
        "  trackable_labels: [car, bus]\n",
        encoding="utf-8",
    )
    cfg = load_yaml(path)
    assert get(cfg, "tracking.invisibility_threshold") == 20
    assert get(cfg, "tracking.missing", "fallback") == "fallback"
    assert get(cfg, "tracking.invisibility_threshold.deeper", 1) == 1

    tc = TrackerConfig.from_dict(cfg)
    assert tc.invisibility_threshold == 20
    assert tc.trackable_labels == ("car", "bus")


def test_empty_yaml_is_empty_config(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_yaml(path) == {}


def test_missing_config_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_yaml(tmp_path / "nope.yaml")


def test_shipped_config_matches_defaults():
    from pathlib import Path

    cfg = load_yaml(Path(__file__).resolve().parent.parent / "configs" / "tracker.yaml")
    assert TrackerConfig.from_dict(cfg) == TrackerConfig()


def test_scalar_label_list_in_yaml_is_rejected(tmp_path):
    path = tmp_path / "tracker.yaml"
    path.write_text("tracking:\n  trackable_labels: car\n", encoding="utf-8")
    with pytest.raises(ValueError, match="trackable_labels"):
        TrackerConfig.from_dict(load_yaml(path))
