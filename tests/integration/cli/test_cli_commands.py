"""Integration tests for the memvault CLI.

Tests verify that:
- Stable exit codes (0, 2, 6) are returned
- --json output is machine-readable
- replay admits, rejects and reports like the library does
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from loguru import logger

from memvault.cli.__main__ import main
from memvault.cli.cli_common import ExitCode, parse_amount
from memvault.core.errors import InvalidInputError
from memvault.core.fingerprint import generate_fingerprint


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path: Path, monkeypatch):
    """Run every command away from any memvault.yaml and MEMVAULT_* env vars."""
    monkeypatch.chdir(tmp_path)
    for var in (
        "MEMVAULT_ENTRY_FEE",
        "MEMVAULT_CAPACITY",
        "MEMVAULT_MILESTONES",
        "MEMVAULT_MIN_FUNDING",
        "MEMVAULT_LOG_LEVEL",
        "MEMVAULT_LOG_DIR",
    ):
        monkeypatch.delenv(var, raising=False)
    yield
    # sinks added by the CLI point at this test's captured stderr and tmp_path
    logger.remove()


def write_yaml(path: Path, data) -> Path:
    path.write_text(yaml.safe_dump(data, allow_unicode=True), encoding="utf-8")
    return path


def json_output(capsys) -> dict:
    return json.loads(capsys.readouterr().out)


class TestInfo:
    def test_banner(self, capsys):
        """Test that info prints the startup banner."""
        exit_code = main(["info"])

        out = capsys.readouterr().out
        assert exit_code == ExitCode.SUCCESS
        assert "Base Onchain Memory Vault #8472 (BOMV8472)" in out
        assert "0.00042 ether" in out
        assert "Min funding:    0.01 ether" in out
        assert "Genesis:        2025-01-31T00:00:00+00:00" in out

    def test_json(self, capsys):
        """--json output wraps Vault.info() in a success envelope."""
        exit_code = main(["info", "--json"])

        result = json_output(capsys)
        assert exit_code == ExitCode.SUCCESS
        assert result["status"] == "success"
        assert result["data"]["capacity"] == 10_000
        assert result["data"]["min_funding"] == 10**16
        assert result["data"]["genesis"] == "2025-01-31T00:00:00+00:00"

    def test_config_file(self, tmp_path: Path, capsys):
        config = write_yaml(tmp_path / "custom.yaml", {"vault": {"name": "Team Vault", "capacity": 7}})

        exit_code = main(["info", "--config", str(config), "--json"])

        data = json_output(capsys)["data"]
        assert exit_code == ExitCode.SUCCESS
        assert data["name"] == "Team Vault"
        assert data["capacity"] == 7

    def test_bad_config_exit_code(self, tmp_path: Path):
        """Invalid config returns exit code 6."""
        config = write_yaml(tmp_path / "bad.yaml", {"vault": {"milestone_thresholds": [5, 1]}})

        assert main(["info", "--config", str(config)]) == ExitCode.CONFIG_ERROR


class TestFingerprint:
    def test_prints_fingerprint(self, capsys):
        exit_code = main(["fingerprint", "gm", "1738281600", "0xabc"])

        assert exit_code == ExitCode.SUCCESS
        assert capsys.readouterr().out.strip() == generate_fingerprint("gm", 1738281600, "0xabc")

    def test_bad_timestamp_is_usage_error(self):
        """Non-integer timestamp returns exit code 2."""
        assert main(["fingerprint", "gm", "soon", "0xabc"]) == 2


class TestReplay:
    def test_replay_reports_stats(self, tmp_path: Path, capsys):
        """Test DoD: replayed records produce the same stats as direct submits."""
        records = [
            {"creator": "alice", "content": "first", "timestamp": 100},
            {"creator": "bob", "content": "second", "timestamp": 101, "payment": "0.001 ether"},
            {"creator": "alice", "content": "third", "timestamp": 102},
        ]
        path = write_yaml(tmp_path / "memories.yaml", records)

        exit_code = main(["replay", str(path), "--json"])

        data = json_output(capsys)["data"]
        assert exit_code == ExitCode.SUCCESS
        assert data["stats"]["count"] == 3
        assert data["stats"]["unique_creators"] == 2
        assert data["stats"]["total_value"] == 10**16 + 2 * 420_000_000_000_000 + 10**15
        assert data["rejected"] == []

    def test_replay_collects_rejections(self, tmp_path: Path, capsys):
        """Rejected records are reported with their error type, in file order."""
        records = [
            {"creator": "alice", "content": "hello", "timestamp": 100},
            {"creator": "alice", "content": "hello", "timestamp": 100},
            {"creator": "alice", "content": "", "timestamp": 101},
            {"creator": "alice", "content": "cheap", "timestamp": 102, "payment": 1},
            {"creator": "alice", "content": "x" * 281, "timestamp": 103},
        ]
        path = write_yaml(tmp_path / "memories.yaml", records)

        exit_code = main(["replay", str(path), "--json"])

        data = json_output(capsys)["data"]
        assert exit_code == ExitCode.SUCCESS
        assert data["stats"]["count"] == 1
        assert [(r["index"], r["error"]) for r in data["rejected"]] == [
            (1, "DuplicateEntryError"),
            (2, "InvalidInputError"),
            (3, "InvalidInputError"),
            (4, "InvalidInputError"),
        ]

    @pytest.mark.parametrize("timestamp", [None, [100, 101], 1.5, "noon"])
    def test_malformed_timestamp_is_rejected_record(self, tmp_path: Path, capsys, timestamp):
        """Test DoD: a bad timestamp rejects only its own record, the replay carries on."""
        records = [
            {"creator": "alice", "content": "bad clock", "timestamp": timestamp},
            {"creator": "alice", "content": "good clock", "timestamp": 100},
        ]
        path = write_yaml(tmp_path / "memories.yaml", records)

        exit_code = main(["replay", str(path), "--json"])

        data = json_output(capsys)["data"]
        assert exit_code == ExitCode.SUCCESS
        assert data["stats"]["count"] == 1
        assert [(r["index"], r["error"]) for r in data["rejected"]] == [(0, "InvalidInputError")]

    def test_integral_float_timestamp_accepted(self, tmp_path: Path, capsys):
        path = write_yaml(tmp_path / "memories.yaml", [{"creator": "alice", "content": "gm", "timestamp": 100.0}])

        main(["replay", str(path), "--json"])

        assert json_output(capsys)["data"]["rejected"] == []

    def test_strict_mode_fails_on_rejection(self, tmp_path: Path):
        """--strict returns exit code 2 when any record is rejected."""
        path = write_yaml(tmp_path / "memories.yaml", [{"creator": "alice", "content": ""}])

        assert main(["replay", str(path), "--strict"]) == ExitCode.INVALID_INPUT

    def test_milestones_reported(self, tmp_path: Path, capsys):
        config = write_yaml(tmp_path / "memvault.yaml", {"vault": {"milestone_thresholds": [2, 3]}})
        records = [{"creator": f"c{i}", "content": f"m{i}", "timestamp": 100 + i} for i in range(3)]
        path = write_yaml(tmp_path / "memories.yaml", records)

        exit_code = main(["replay", str(path), "--config", str(config), "--json"])

        data = json_output(capsys)["data"]
        assert exit_code == ExitCode.SUCCESS
        assert data["milestones"] == [
            {"threshold": 2, "timestamp": 101},
            {"threshold": 3, "timestamp": 102},
        ]
        assert data["stats"]["milestone1"] is True
        assert data["stats"]["milestone2"] is True

    def test_human_output(self, tmp_path: Path, capsys):
        path = write_yaml(
            tmp_path / "memories.yaml",
            {"funding": "1 ether", "entries": [{"creator": "alice", "content": "gm", "timestamp": 5}]},
        )

        exit_code = main(["replay", str(path), "--verbose"])

        out = capsys.readouterr().out
        assert exit_code == ExitCode.SUCCESS
        assert "✅ #0 alice: gm" in out
        assert "Memories:        1" in out
        assert "1.00042 ether" in out

    def test_insufficient_funding(self, tmp_path: Path):
        """Funding below the minimum returns exit code 2."""
        path = write_yaml(tmp_path / "memories.yaml", [])

        assert main(["replay", str(path), "--funding", "1"]) == ExitCode.INVALID_INPUT

    def test_malformed_file(self, tmp_path: Path):
        path = tmp_path / "memories.yaml"
        path.write_text("just a string\n", encoding="utf-8")

        assert main(["replay", str(path)]) == ExitCode.INVALID_INPUT

    def test_missing_file_is_usage_error(self, tmp_path: Path):
        assert main(["replay", str(tmp_path / "missing.yaml")]) == 2


class TestParseAmount:
    def test_wei_and_ether(self):
        assert parse_amount(5) == 5
        assert parse_amount("5") == 5
        assert parse_amount("0.00042 ether") == 420_000_000_000_000
        assert parse_amount("1 Ether") == 10**18

    def test_rejects_garbage(self):
        with pytest.raises(InvalidInputError):
            parse_amount("lots")


class TestLogging:
    """Logging settings from MEMVAULT_LOG_* and memvault.yaml reach loguru."""

    @pytest.fixture
    def replay_file(self, tmp_path: Path) -> Path:
        return write_yaml(tmp_path / "memories.yaml", [{"creator": "alice", "content": "gm", "timestamp": 5}])

    def read_log(self, path: Path) -> str:
        # removing the sinks drains the enqueued file writers
        logger.remove()
        return path.read_text(encoding="utf-8")

    def test_env_log_dir_writes_json_logs(self, tmp_path: Path, monkeypatch, replay_file: Path):
        """Test DoD: MEMVAULT_LOG_DIR + MEMVAULT_LOG_LEVEL produce memvault.jsonl."""
        monkeypatch.setenv("MEMVAULT_LOG_DIR", str(tmp_path / "logs"))
        monkeypatch.setenv("MEMVAULT_LOG_LEVEL", "info")

        assert main(["replay", str(replay_file)]) == ExitCode.SUCCESS

        content = self.read_log(tmp_path / "logs" / "memvault.jsonl")
        assert "Vault initialized" in content
        assert (tmp_path / "logs" / "vault.jsonl").exists()

    def test_yaml_logging_section(self, tmp_path: Path, replay_file: Path):
        """Test that the logging: section of memvault.yaml configures the file sink."""
        write_yaml(tmp_path / "memvault.yaml", {"logging": {"level": "INFO", "dir": "yaml-logs"}})

        assert main(["replay", str(replay_file)]) == ExitCode.SUCCESS

        assert "Vault initialized" in self.read_log(tmp_path / "yaml-logs" / "memvault.jsonl")

    def test_log_level_option_overrides_env(self, tmp_path: Path, monkeypatch, replay_file: Path):
        """--log-level wins over MEMVAULT_LOG_LEVEL."""
        monkeypatch.setenv("MEMVAULT_LOG_DIR", str(tmp_path / "logs"))
        monkeypatch.setenv("MEMVAULT_LOG_LEVEL", "DEBUG")

        assert main(["--log-level", "error", "replay", str(replay_file)]) == ExitCode.SUCCESS

        assert "Vault initialized" not in self.read_log(tmp_path / "logs" / "memvault.jsonl")

    def test_no_log_dir_writes_no_files(self, tmp_path: Path, replay_file: Path):
        assert main(["replay", str(replay_file)]) == ExitCode.SUCCESS

        assert not list(tmp_path.glob("**/*.jsonl"))

    def test_unknown_env_level_falls_back_with_warning(self, monkeypatch, capsys, replay_file: Path):
        monkeypatch.setenv("MEMVAULT_LOG_LEVEL", "LOUD")

        assert main(["replay", str(replay_file)]) == ExitCode.SUCCESS

        assert "Logging config ignored: unknown log level 'LOUD'" in capsys.readouterr().err

    def test_unknown_option_level_is_usage_error(self, replay_file: Path):
        assert main(["--log-level", "loud", "replay", str(replay_file)]) == 2
