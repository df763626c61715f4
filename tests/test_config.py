from __future__ import annotations

import base64
import json
import os
from pathlib import Path

import pytest

from utils.config import load_config

ENV_KEYS = (
    "GOOGLE_CLIENT_SECRETS",
    "GOOGLE_TOKEN_PATH",
    "GOOGLE_CLIENT_SECRETS_JSON",
    "GOOGLE_CLIENT_SECRETS_B64",
    "GOOGLE_TOKEN_JSON",
    "GOOGLE_TOKEN_B64",
    "CLIENT_ID",
    "CLIENT_SECRET",
    "REDIRECT_URI",
    "GMAIL_USER_ID",
    "AUTO_REPLY_LABEL",
    "REPLY_SIGNATURE",
    "POLL_MIN_SECONDS",
    "POLL_MAX_SECONDS",
    "LOG_LEVEL",
    "REPLIED_STORE",
)


@pytest.fixture
def env(tmp_path: Path, monkeypatch):
    # load_dotenv writes straight into os.environ
    monkeypatch.setattr(os, "environ", os.environ.copy())
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("DB_PATH", str(tmp_path / "data" / "replied.db"))
    monkeypatch.setenv("STATS_FILE", str(tmp_path / "data" / "stats.json"))
    monkeypatch.setenv("GOOGLE_CLIENT_SECRETS", str(tmp_path / "credentials.json"))
    monkeypatch.setenv("GOOGLE_TOKEN_PATH", str(tmp_path / "token.json"))
    return monkeypatch


def test_defaults(tmp_path, env):
    config = load_config(tmp_path / "missing.env")

    assert config.label_name == "Vacation Auto-Reply"
    assert (config.min_interval, config.max_interval) == (45, 120)
    assert config.account.user_id == "me"
    assert config.replied_store_enabled is True
    assert config.account.client.complete is False
    assert (tmp_path / "logs").is_dir()


def test_env_file_values_are_loaded(tmp_path, env):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "AUTO_REPLY_LABEL=Away\nREPLY_SIGNATURE=Jane Doe\nPOLL_MIN_SECONDS=10\nPOLL_MAX_SECONDS=20\n"
        "CLIENT_ID=cid\nCLIENT_SECRET=secret\nREPLIED_STORE=off\n",
        encoding="utf-8",
    )
    config = load_config(env_file)

    assert config.label_name == "Away"
    assert config.signature == "Jane Doe"
    assert (config.min_interval, config.max_interval) == (10, 20)
    assert config.account.client.complete is True
    assert config.replied_store_enabled is False


def test_inverted_intervals_are_rejected(tmp_path, env):
    env.setenv("POLL_MIN_SECONDS", "60")
    env.setenv("POLL_MAX_SECONDS", "30")
    with pytest.raises(ValueError):
        load_config(tmp_path / "missing.env")


def test_inline_secrets_are_written_to_disk(tmp_path, env):
    secrets = json.dumps({"installed": {"client_id": "cid", "client_secret": "sec"}})
    env.setenv("GOOGLE_CLIENT_SECRETS_JSON", secrets)
    env.setenv("GOOGLE_TOKEN_B64", base64.b64encode(b'{"token": "t"}').decode("ascii"))
    config = load_config(tmp_path / "missing.env")

    assert config.account.credentials_file.read_text(encoding="utf-8") == secrets
    assert json.loads(config.account.token_file.read_text(encoding="utf-8")) == {"token": "t"}
