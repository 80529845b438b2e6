"""
Tests for configuration loading.
"""

import pytest
from pydantic import ValidationError

from dirsweep.core.config import AppConfig, MsRange, PacingConfig
from dirsweep.core.config.loader import (
    ConfigError,
    load_app_config,
    load_targets,
    normalize_targets,
    validate_app_config_file,
)


class TestModels:
    """Tests for configuration models."""

    def test_defaults(self):
        config = AppConfig()

        assert config.pacing.max_attempts == 4
        assert config.pacing.gate_spacing == MsRange.of(18_000, 28_000)
        assert config.pacing.batch_size == 5
        assert config.pacing.batch_size_floor == 3
        assert config.service.block_statuses == [429, 403]
        assert config.targets == []

    def test_range_rejects_inverted_bounds(self):
        with pytest.raises(ValidationError):
            MsRange(min_ms=10, max_ms=5)

    def test_range_draw_is_inclusive(self):
        import random

        rng = random.Random(0)
        draws = {MsRange.of(1, 3).draw(rng) for _ in range(200)}

        assert draws == {1, 2, 3}

    def test_range_widen(self):
        assert MsRange.of(100, 200).widen(10, 20) == MsRange.of(110, 220)
        assert MsRange.of(100, 200).widen(-10, -20) == MsRange.of(100, 200)

    def test_floor_above_batch_size(self):
        with pytest.raises(ValidationError):
            PacingConfig(batch_size=2, batch_size_floor=3)


class TestLoadAppConfig:
    """Tests for load_app_config."""

    def test_load(self, tmp_path):
        path = tmp_path / "app.yaml"
        path.write_text(
            "pacing:\n"
            "  max_attempts: 2\n"
            "  gate_spacing: {min_ms: 1000, max_ms: 2000}\n"
            "service:\n"
            "  result_selector: li.row\n"
            "targets: [GLENELG, BRIGHTON]\n",
            encoding="utf-8",
        )

        config = load_app_config(path)

        assert config.pacing.max_attempts == 2
        assert config.pacing.gate_spacing == MsRange.of(1_000, 2_000)
        assert config.pacing.base_backoff_ms == 60_000
        assert config.service.result_selector == "li.row"
        assert config.targets == ["GLENELG", "BRIGHTON"]

    def test_env_expansion(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SWEEP_PROXY", "http://proxy.local:3128")
        monkeypatch.delenv("SWEEP_MISSING", raising=False)
        path = tmp_path / "app.yaml"
        path.write_text(
            "browser:\n"
            "  proxy: ${SWEEP_PROXY}\n"
            "  user_agent: ${SWEEP_MISSING:-TestAgent/1.0}\n",
            encoding="utf-8",
        )

        config = load_app_config(path)

        assert config.browser.proxy == "http://proxy.local:3128"
        assert config.browser.user_agent == "TestAgent/1.0"

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "app.yaml"
        path.write_text("", encoding="utf-8")

        assert load_app_config(path) == AppConfig()

    def test_missing_default_location_gives_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        assert load_app_config() == AppConfig()

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_app_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "app.yaml"
        path.write_text("pacing: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            load_app_config(path)
        assert exc_info.value.details

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "app.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="mapping"):
            load_app_config(path)

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "app.yaml"
        path.write_text("pacing:\n  max_attempts: 0\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid app configuration"):
            load_app_config(path)


class TestValidateAppConfigFile:
    """Tests for validate_app_config_file."""

    def test_valid(self, tmp_path):
        path = tmp_path / "app.yaml"
        path.write_text("pacing:\n  batch_size: 6\n", encoding="utf-8")

        assert validate_app_config_file(path) == []

    def test_reports_locations(self, tmp_path):
        path = tmp_path / "app.yaml"
        path.write_text(
            "pacing:\n"
            "  courtesy_pause: {min_ms: 2000, max_ms: 1000}\n"
            "  max_attempts: -1\n",
            encoding="utf-8",
        )

        errors = validate_app_config_file(path)

        assert any(e.startswith("pacing.max_attempts") for e in errors)
        assert any(e.startswith("pacing.courtesy_pause") for e in errors)

    def test_missing(self, tmp_path):
        errors = validate_app_config_file(tmp_path / "missing.yaml")

        assert len(errors) == 1
        assert "not found" in errors[0]


class TestTargets:
    """Tests for target list loading."""

    def test_text_file(self, tmp_path):
        path = tmp_path / "targets.txt"
        path.write_text(
            "# suburbs\n"
            "GLENELG\n"
            "\n"
            "  BRIGHTON  # beach\n"
            "GLENELG\n"
            "Unley\n",
            encoding="utf-8",
        )

        assert load_targets(path) == ["GLENELG", "BRIGHTON", "Unley"]

    def test_yaml_list(self, tmp_path):
        path = tmp_path / "targets.yaml"
        path.write_text("- A\n- B\n- A\n", encoding="utf-8")

        assert load_targets(path) == ["A", "B"]

    def test_yaml_mapping(self, tmp_path):
        path = tmp_path / "targets.yml"
        path.write_text("targets:\n  - X\n  - 3000\n", encoding="utf-8")

        assert load_targets(path) == ["X", "3000"]

    def test_yaml_without_list(self, tmp_path):
        path = tmp_path / "targets.yaml"
        path.write_text("other: 1\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            load_targets(path)

    def test_missing_text_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_targets(tmp_path / "targets.txt")

    def test_normalize(self):
        assert normalize_targets([" a", "b ", "", "a", "  "]) == ["a", "b"]
