from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

import main
from tests.helpers import FakeGmail, make_message


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch):
    for key in ("CLIENT_ID", "CLIENT_SECRET", "REPLIED_STORE", "POLL_MIN_SECONDS", "POLL_MAX_SECONDS"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("DB_PATH", str(tmp_path / "replied.db"))
    monkeypatch.setenv("STATS_FILE", str(tmp_path / "stats.json"))
    monkeypatch.setenv("GOOGLE_CLIENT_SECRETS", str(tmp_path / "credentials.json"))
    monkeypatch.setenv("GOOGLE_TOKEN_PATH", str(tmp_path / "token.json"))
    return tmp_path


def test_once_replies_and_records_stats(isolated_env, monkeypatch):
    gmail = FakeGmail([make_message("m1", headers=[("From", '"A" <a@x.com>')])])
    monkeypatch.setattr(main.AppContext, "connect", lambda self, interactive=False: gmail)
    runner = CliRunner()

    result = runner.invoke(main.cli, ["--env-file", str(isolated_env / ".env"), "once"])
    assert result.exit_code == 0, result.output
    assert "replied" in result.output
    assert len(gmail.sent) == 1

    result = runner.invoke(main.cli, ["--env-file", str(isolated_env / ".env"), "stats"])
    assert result.exit_code == 0, result.output
    assert "Replies sent" in result.output
    assert "a@x.com" in result.output


def test_once_without_credentials_fails_cleanly(isolated_env):
    result = CliRunner().invoke(main.cli, ["--env-file", str(isolated_env / ".env"), "once"])
    assert result.exit_code == 1
    assert "Cycle failed" in result.output
