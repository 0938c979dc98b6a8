"""Tests for input parsing and validation."""

import pytest

from pr_status.config import (
    ActionConfig,
    RunMode,
    load_config,
    load_file_defaults,
    read_action_inputs,
)
from pr_status.errors import ConfigurationError


class TestActionConfig:
    def test_label_mode_defaults(self):
        config = ActionConfig.from_inputs({"github-token": "t", "run-mode": "label", "pull-number": "12"})

        assert config.run_mode is RunMode.LABEL
        assert config.pull_number == 12
        assert config.required_approvals == 1
        assert config.stale_days == 7
        assert config.labels.all() == ["pending review", "changes requested", "approved"]

    def test_report_mode(self):
        config = ActionConfig.from_inputs(
            {
                "github-token": "t",
                "run-mode": "report",
                "slack-token": "xoxb",
                "slack-channel": "#eng",
                "required-approvals": "2",
                "stale-days": "14",
            }
        )
        assert config.run_mode is RunMode.REPORT
        assert config.required_approvals == 2
        assert config.stale_days == 14
        assert config.pull_number is None

    def test_empty_strings_are_unset(self):
        config = ActionConfig.from_inputs(
            {"github-token": "t", "run-mode": "label", "pull-number": "3", "approved-label": ""}
        )
        assert config.approved_label == "approved"

    def test_label_mode_requires_pull_number(self):
        with pytest.raises(ConfigurationError, match="pull-number"):
            ActionConfig.from_inputs({"github-token": "t", "run-mode": "label"})

    def test_report_mode_requires_slack(self):
        with pytest.raises(ConfigurationError, match="slack-token, slack-channel"):
            ActionConfig.from_inputs({"github-token": "t", "run-mode": "report"})

    def test_unknown_run_mode(self):
        with pytest.raises(ConfigurationError, match="run-mode"):
            ActionConfig.from_inputs({"github-token": "t", "run-mode": "nightly"})

    def test_non_numeric_approvals(self):
        with pytest.raises(ConfigurationError, match="required-approvals"):
            ActionConfig.from_inputs(
                {"github-token": "t", "run-mode": "label", "pull-number": "1", "required-approvals": "two"}
            )

    def test_negative_stale_days(self):
        with pytest.raises(ConfigurationError, match="stale-days"):
            ActionConfig.from_inputs(
                {"github-token": "t", "run-mode": "label", "pull-number": "1", "stale-days": "-1"}
            )

    def test_missing_token(self):
        with pytest.raises(ConfigurationError, match="github-token"):
            ActionConfig.from_inputs({"run-mode": "label", "pull-number": "1"})

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            ActionConfig.from_inputs({})

    def test_token_not_in_repr(self):
        config = ActionConfig.from_inputs({"github-token": "secret", "run-mode": "label", "pull-number": "1"})
        assert "secret" not in repr(config)


class TestReadActionInputs:
    def test_hyphenated_names(self):
        environ = {"INPUT_GITHUB-TOKEN": "t", "INPUT_RUN-MODE": "label", "INPUT_PULL-NUMBER": "5"}
        assert read_action_inputs(environ) == {"github-token": "t", "run-mode": "label", "pull-number": "5"}

    def test_underscore_names(self):
        environ = {"INPUT_GITHUB_TOKEN": "t", "INPUT_SLACK_CHANNEL": "#eng"}
        assert read_action_inputs(environ) == {"github-token": "t", "slack-channel": "#eng"}

    def test_blank_values_skipped(self):
        assert read_action_inputs({"INPUT_RUN-MODE": "  ", "INPUT_STALE-DAYS": " 3 "}) == {"stale-days": "3"}


class TestLoadFileDefaults:
    def test_no_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert load_file_defaults() == {}

    def test_discovers_file(self, tmp_path, monkeypatch):
        (tmp_path / "pr-status.yaml").write_text("required-approvals: 2\nstale-days: 10\n")
        monkeypatch.chdir(tmp_path)
        assert load_file_defaults() == {"required-approvals": 2, "stale-days": 10}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "pr-status.yaml"
        path.write_text("")
        assert load_file_defaults(path) == {}

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Config file not found"):
            load_file_defaults(tmp_path / "nope.yaml")

    def test_unknown_keys(self, tmp_path):
        path = tmp_path / "pr-status.yaml"
        path.write_text("run-mode: label\nrepo: foo/bar\n")
        with pytest.raises(ConfigurationError, match="Unknown input"):
            load_file_defaults(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "pr-status.yaml"
        path.write_text("- label\n- report\n")
        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            load_file_defaults(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "pr-status.yaml"
        path.write_text("run-mode: [label\n")
        with pytest.raises(ConfigurationError, match="Could not parse"):
            load_file_defaults(path)


class TestLoadConfig:
    def test_priority_chain(self, tmp_path):
        path = tmp_path / "pr-status.yaml"
        path.write_text("run-mode: label\npull-number: 1\nrequired-approvals: 3\nstale-days: 9\n")
        environ = {"GITHUB_TOKEN": "env-token", "INPUT_PULL-NUMBER": "2", "INPUT_REQUIRED-APPROVALS": "4"}

        config = load_config(path, environ, overrides={"required-approvals": 5, "stale-days": None})

        assert config.github_token == "env-token"
        assert config.pull_number == 2
        assert config.required_approvals == 5
        assert config.stale_days == 9

    def test_input_token_beats_env_token(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        environ = {
            "GITHUB_TOKEN": "env-token",
            "INPUT_GITHUB-TOKEN": "input-token",
            "INPUT_RUN-MODE": "label",
            "INPUT_PULL-NUMBER": "1",
        }
        assert load_config(environ=environ).github_token == "input-token"

    def test_invalid_combination_raises(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(ConfigurationError, match="report mode"):
            load_config(environ={"GITHUB_TOKEN": "t", "INPUT_RUN-MODE": "report"})


class TestConcurrency:
    def test_defaults_to_sequential(self):
        config = ActionConfig.from_inputs({"github-token": "t", "run-mode": "label", "pull-number": "1"})
        assert config.concurrency == 1

    def test_read_from_action_input(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        environ = {
            "GITHUB_TOKEN": "t",
            "INPUT_RUN-MODE": "report",
            "INPUT_SLACK-TOKEN": "xoxb",
            "INPUT_SLACK-CHANNEL": "#eng",
            "INPUT_CONCURRENCY": "4",
        }
        assert load_config(environ=environ).concurrency == 4

    def test_must_be_positive(self):
        with pytest.raises(ConfigurationError, match="concurrency"):
            ActionConfig.from_inputs(
                {"github-token": "t", "run-mode": "label", "pull-number": "1", "concurrency": "0"}
            )
