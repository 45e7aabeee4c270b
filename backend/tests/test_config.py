"""Tests for PipelineConfig defaults, validation and environment overrides."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from pydantic import ValidationError

from config import PipelineConfig


class TestDefaults:
    def test_defaults(self):
        config = PipelineConfig()
        assert config.max_revisions_per_stage == 2
        assert config.global_step_budget == 25
        assert config.timeout_ms == 300_000
        assert config.pass_threshold == 8.0


class TestValidation:
    def test_negative_revisions_rejected(self):
        with pytest.raises(ValidationError):
            PipelineConfig(max_revisions_per_stage=-1)

    def test_zero_budget_rejected(self):
        with pytest.raises(ValidationError):
            PipelineConfig(global_step_budget=0)

    def test_zero_timeout_rejected(self):
        with pytest.raises(ValidationError):
            PipelineConfig(timeout_ms=0)

    def test_threshold_above_ten_rejected(self):
        with pytest.raises(ValidationError):
            PipelineConfig(pass_threshold=11)


class TestFromEnv:
    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("MAX_REVISIONS_PER_STAGE", "4")
        monkeypatch.setenv("GLOBAL_STEP_BUDGET", "40")
        monkeypatch.setenv("RUN_TIMEOUT_MS", "1000")
        monkeypatch.setenv("PASS_THRESHOLD", "7.5")

        config = PipelineConfig.from_env()

        assert config.max_revisions_per_stage == 4
        assert config.global_step_budget == 40
        assert config.timeout_ms == 1000
        assert config.pass_threshold == 7.5

    def test_unset_env_uses_defaults(self, monkeypatch):
        for name in ("MAX_REVISIONS_PER_STAGE", "GLOBAL_STEP_BUDGET", "RUN_TIMEOUT_MS", "PASS_THRESHOLD"):
            monkeypatch.delenv(name, raising=False)
        assert PipelineConfig.from_env() == PipelineConfig()

    def test_invalid_env_value_rejected(self, monkeypatch):
        monkeypatch.setenv("GLOBAL_STEP_BUDGET", "0")
        with pytest.raises(ValidationError):
            PipelineConfig.from_env()

    def test_env_revision_cap_raises_budget(self, monkeypatch):
        monkeypatch.delenv("GLOBAL_STEP_BUDGET", raising=False)
        monkeypatch.setenv("MAX_REVISIONS_PER_STAGE", "5")

        config = PipelineConfig.from_env()

        assert config.max_revisions_per_stage == 5
        assert config.global_step_budget == 37

    def test_explicit_env_budget_kept(self, monkeypatch):
        monkeypatch.setenv("MAX_REVISIONS_PER_STAGE", "5")
        monkeypatch.setenv("GLOBAL_STEP_BUDGET", "30")
        assert PipelineConfig.from_env().global_step_budget == 30


class TestRevisionCap:
    def test_required_step_budget(self):
        assert PipelineConfig.required_step_budget(0) == 7
        assert PipelineConfig.required_step_budget(2) == 19
        assert PipelineConfig.required_step_budget(5) == 37

    def test_default_budget_covers_default_cap(self):
        config = PipelineConfig()
        assert config.global_step_budget >= config.required_step_budget(config.max_revisions_per_stage)

    def test_higher_cap_raises_budget(self):
        config = PipelineConfig().with_revision_cap(5)
        assert config.max_revisions_per_stage == 5
        assert config.global_step_budget == 37

    def test_lower_cap_keeps_budget(self):
        config = PipelineConfig().with_revision_cap(0)
        assert config.max_revisions_per_stage == 0
        assert config.global_step_budget == 25

    def test_negative_cap_rejected(self):
        with pytest.raises(ValidationError):
            PipelineConfig().with_revision_cap(-1)
