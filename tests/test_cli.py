"""Tests for CLI commands: registry, package manager and depcheck are mocked."""

from __future__ import annotations

import json
import logging
import os
from unittest.mock import AsyncMock, patch

import pytest
import structlog
from click.testing import CliRunner

from depaudit.cli import main
from depaudit.core.config import DEFAULT_REGISTRY_URL, Settings, load_settings
from depaudit.core.logging import QUIET_LOGGERS, build_logging_config, setup_logging
from depaudit.services.models import PackageMetadata, ProcessResult, UnusedReport

MANIFEST = {
    "name": "app",
    "version": "1.0.0",
    "dependencies": {"express": "^4.18.0", "lodash": "^4.17.0"},
    "devDependencies": {"jest": "^29.0.0"},
}

LOCK = {
    "lockfileVersion": 3,
    "packages": {
        "": {"name": "app"},
        "node_modules/express": {"version": "4.18.0"},
        "node_modules/lodash": {"version": "3.10.1"},
        "node_modules/jest": {"version": "29.0.0"},
    },
}


@pytest.fixture
def project(write_project):
    return write_project(MANIFEST, {"package-lock.json": json.dumps(LOCK)})


class FakeRegistryClient:
    latest = {"express": "4.18.0", "lodash": "4.17.21", "jest": "29.5.0"}

    def __init__(self, **kwargs):
        self.kwargs = kwargs

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return None

    async def latest_version(self, name):
        return self.latest.get(name)


class FakeDepcheckClient:
    def __init__(self, project_root, timeout=120.0):
        self.project_root = project_root

    async def find_unused(self):
        return UnusedReport(dependencies=["lodash"])


def _invoke(*args):
    return CliRunner().invoke(main, list(args))


# ── config ──


class TestLoadSettings:
    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = load_settings()
        assert settings.registry_url == DEFAULT_REGISTRY_URL
        assert settings.concurrency == 8
        assert settings.timeout == 30.0
        assert settings.log_level == "WARNING"

    def test_overrides(self):
        env = {
            "DEPAUDIT_REGISTRY_URL": "https://npm.internal/",
            "DEPAUDIT_CONCURRENCY": "0",
            "DEPAUDIT_TIMEOUT": "5.5",
            "DEPAUDIT_LOG_LEVEL": "debug",
            "DEPAUDIT_LOG_FORMAT": "JSON",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = load_settings()
        assert settings.registry_url == "https://npm.internal"
        assert settings.concurrency == 1
        assert settings.timeout == 5.5
        assert settings.log_level == "DEBUG"
        assert settings.log_format == "json"


# ── scan ──


class TestScanCommand:
    def test_json(self, project):
        result = _invoke("--json", "-C", str(project), "scan")
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["manager"] == "npm"
        assert data["dependencies"] == MANIFEST["dependencies"]
        assert data["lockfileDependencies"]["lodash"] == {"version": "3.10.1"}
        statuses = {r["name"]: r["status"] for r in data["reconciliation"]}
        assert statuses == {"express": "satisfied", "lodash": "mismatched", "jest": "satisfied"}

    def test_table(self, project):
        result = _invoke("-C", str(project), "scan")
        assert result.exit_code == 0, result.output
        assert "Dependencies" in result.output
        assert "Lockfile (npm)" in result.output
        assert "Reconciliation: 2 satisfied, 1 mismatched, 0 unlocked" in result.output
        assert "✓ Scan complete" in result.output

    def test_missing_manifest(self, tmp_path):
        result = _invoke("-C", str(tmp_path), "scan")
        assert result.exit_code == 1
        assert "package.json not found" in result.output

    def test_version(self):
        result = _invoke("--version")
        assert result.exit_code == 0
        assert "dep-audit" in result.output


# ── update ──


class TestUpdateCommand:
    def test_json(self, project):
        with patch("depaudit.cli.NpmRegistryClient", FakeRegistryClient):
            result = _invoke("--json", "-C", str(project), "update")
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert [(s["name"], s["type"]) for s in data] == [("lodash", "MAJOR"), ("jest", "MINOR")]

    def test_safe(self, project):
        with patch("depaudit.cli.NpmRegistryClient", FakeRegistryClient):
            result = _invoke("--json", "-C", str(project), "update", "--safe")
        assert result.exit_code == 0, result.output
        assert [s["name"] for s in json.loads(result.stdout)] == ["jest"]


# ── dependabot / fix / unused ──


class TestDependabotCommand:
    def test_json(self, project):
        mock = AsyncMock(return_value=ProcessResult(0, "{}", ""))
        with patch("depaudit.services.package_manager.run_command", mock):
            result = _invoke("--json", "-C", str(project), "dependabot")
        assert result.exit_code == 0, result.output
        issues = json.loads(result.stdout)["issues"]
        assert [i["type"] for i in issues] == ["VERSION_MISMATCH"]
        assert issues[0]["fix"] == "npm install lodash@^4.17.0"

    def test_missing_lockfile_fails(self, write_project):
        root = write_project(MANIFEST)
        result = _invoke("-C", str(root), "dependabot")
        assert result.exit_code == 1
        assert "Missing package.json or package-lock.json" in result.output


class TestFixCommand:
    def test_dry_run(self, project):
        mock = AsyncMock(return_value=ProcessResult(0, "{}", ""))
        with patch("depaudit.cli.DepcheckClient", FakeDepcheckClient), patch(
            "depaudit.services.package_manager.run_command", mock
        ):
            result = _invoke("-C", str(project), "fix", "--dry-run")
        assert result.exit_code == 0, result.output
        assert "npm uninstall lodash" in result.output
        assert "Dry run mode" in result.output

    def test_json(self, project):
        mock = AsyncMock(return_value=ProcessResult(0, "{}", ""))
        with patch("depaudit.cli.DepcheckClient", FakeDepcheckClient), patch(
            "depaudit.services.package_manager.run_command", mock
        ):
            result = _invoke("--json", "-C", str(project), "fix")
        assert result.exit_code == 0, result.output
        assert [f["type"] for f in json.loads(result.stdout)] == ["UNUSED_DEPS", "LOCKFILE_SYNC"]


class TestUnusedCommand:
    def test_json(self, project):
        with patch("depaudit.cli.DepcheckClient", FakeDepcheckClient):
            result = _invoke("--json", "-C", str(project), "unused")
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == ["lodash"]


# ── risk ──


class TestRiskCommand:
    def test_json(self, project):
        class RiskRegistry(FakeRegistryClient):
            async def fetch_metadata(self, name):
                return PackageMetadata(
                    name=name,
                    latest_version="1.0.0",
                    maintainers=[{"name": "a"}, {"name": "b"}],
                    weekly_downloads=50_000,
                )

        audit = json.dumps({"vulnerabilities": {"lodash": {"name": "lodash"}}})
        mock = AsyncMock(return_value=ProcessResult(1, audit, ""))
        with patch("depaudit.cli.NpmRegistryClient", RiskRegistry), patch(
            "depaudit.services.package_manager.run_command", mock
        ):
            result = _invoke("--json", "-C", str(project), "risk")
        assert result.exit_code == 0, result.output
        scores = {r["name"]: (r["score"], r["level"]) for r in json.loads(result.stdout)}
        assert scores == {"express": (10, "LOW"), "lodash": (7, "LOW"), "jest": (10, "LOW")}


# ── logging ──


class TestSetupLogging:
    def test_verbose_forces_debug(self):
        setup_logging(verbose=True, settings=Settings(log_level="ERROR"))
        assert logging.getLogger("depaudit").level == logging.DEBUG

    def test_level_from_settings(self):
        setup_logging(settings=Settings(log_level="ERROR", log_format="json"))
        assert logging.getLogger("depaudit").level == logging.ERROR

    def test_records_go_to_stderr(self):
        config = build_logging_config("INFO", "console")
        assert config["handlers"]["stderr"]["stream"] == "ext://sys.stderr"
        assert config["root"] == {"handlers": ["stderr"], "level": "INFO"}
        assert config["loggers"]["depaudit"] == {"level": "INFO"}
        assert all(config["loggers"][name] == {"level": "WARNING"} for name in QUIET_LOGGERS)

    def test_json_format_renders_json_with_timestamps(self):
        formatter = build_logging_config("INFO", "json")["formatters"]["events"]
        assert isinstance(formatter["processors"][-1], structlog.processors.JSONRenderer)
        assert any(
            isinstance(p, structlog.processors.TimeStamper) for p in formatter["foreign_pre_chain"]
        )

    def test_console_format_has_no_timestamps(self):
        formatter = build_logging_config("INFO", "console")["formatters"]["events"]
        assert isinstance(formatter["processors"][-1], structlog.dev.ConsoleRenderer)
        assert not any(
            isinstance(p, structlog.processors.TimeStamper) for p in formatter["foreign_pre_chain"]
        )
