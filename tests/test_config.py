import json
import logging

from diamond_sim.config import DEFAULT_TUNING, TuningConfig, load_tuning, resolve_tuning


def test_defaults_are_returned_for_missing_keys() -> None:
    tuning = TuningConfig(values={})
    assert tuning.get("drag_factor") == DEFAULT_TUNING["drag_factor"]
    assert tuning.get("not_a_key", 2.5) == 2.5


def test_overrides_merge_file_and_dict(tmp_path) -> None:
    path = tmp_path / "tuning.json"
    path.write_text(json.dumps({"drag_factor": 0.7, "max_innings": 15}), encoding="utf-8")
    tuning = load_tuning(overrides={"max_innings": 11, "mystery": 1, "closer_inning": "oops"}, overrides_path=path)
    assert tuning.get("drag_factor") == 0.7
    assert tuning.get("max_innings") == 11.0
    assert tuning.get("closer_inning") == DEFAULT_TUNING["closer_inning"]
    assert "mystery" not in tuning.values


def test_unreadable_override_file_is_logged(tmp_path, caplog) -> None:
    caplog.set_level(logging.WARNING, logger="diamond_sim.config")
    tuning = load_tuning(overrides_path=tmp_path / "missing.json")
    assert tuning.values == DEFAULT_TUNING
    assert any("Ignoring tuning overrides" in r.getMessage() for r in caplog.records)


def test_resolve_tuning_accepts_configs_dicts_and_none() -> None:
    config = TuningConfig()
    assert resolve_tuning(config) is config
    assert resolve_tuning({"drag_factor": 0.5}).get("drag_factor") == 0.5
    assert resolve_tuning(None).values == DEFAULT_TUNING
