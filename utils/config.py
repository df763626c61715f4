from __future__ import annotations

import base64
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


PROJECT_ROOT = Path(__file__).resolve().parent.parent

DEFAULT_LABEL = "Vacation Auto-Reply"
DEFAULT_SIGNATURE = "Pratish Ninawe"
DEFAULT_MIN_INTERVAL = 45
DEFAULT_MAX_INTERVAL = 120


@dataclass(slots=True)
class ClientOverrides:
    """OAuth client values supplied through the environment instead of the secrets file."""

    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    redirect_uri: Optional[str] = None

    @property
    def complete(self) -> bool:
        return bool(self.client_id and self.client_secret)


@dataclass(slots=True)
class AccountConfig:
    credentials_file: Path
    token_file: Path
    user_id: str
    client: ClientOverrides


@dataclass(slots=True)
class AppConfig:
    account: AccountConfig
    label_name: str
    signature: str
    min_interval: int
    max_interval: int
    log_dir: Path
    log_level: str
    db_path: Path
    replied_store_enabled: bool
    stats_file: Path


def _resolve_path(value: str | None, fallback: str) -> Path:
    candidate = Path(value or fallback)
    if not candidate.is_absolute():
        candidate = PROJECT_ROOT / candidate
    return candidate


def _maybe_write_secret_file(target: Path, inline_value: str | None, b64_value: str | None) -> None:
    if not inline_value and not b64_value:
        return
    target.parent.mkdir(parents=True, exist_ok=True)
    if inline_value:
        target.write_text(inline_value, encoding="utf-8")
        return
    try:
        decoded = base64.b64decode(b64_value or "", validate=True)
    except ValueError as exc:
        raise ValueError("Failed to decode base64 secret payload") from exc
    target.write_bytes(decoded)


def _flag(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() not in {"0", "off", "false", "no"}


def _intervals(min_raw: str | None, max_raw: str | None) -> tuple[int, int]:
    min_interval = int(min_raw or DEFAULT_MIN_INTERVAL)
    max_interval = int(max_raw or DEFAULT_MAX_INTERVAL)
    if min_interval < 1:
        raise ValueError(f"POLL_MIN_SECONDS must be at least 1, got {min_interval}")
    if max_interval < min_interval:
        raise ValueError(
            f"POLL_MAX_SECONDS ({max_interval}) must not be lower than POLL_MIN_SECONDS ({min_interval})"
        )
    return min_interval, max_interval


def load_config(env_file: str | os.PathLike[str] | None = None) -> AppConfig:
    """Load configuration values from a .env file and environment variables."""

    if env_file:
        load_dotenv(env_file, override=False)
    else:
        load_dotenv(override=False)

    credentials_file = _resolve_path(os.getenv("GOOGLE_CLIENT_SECRETS"), "credentials.json")
    token_file = _resolve_path(os.getenv("GOOGLE_TOKEN_PATH"), "token.json")
    log_dir = _resolve_path(os.getenv("LOG_DIR"), "logs")
    db_path = _resolve_path(os.getenv("DB_PATH"), "data/vacation_responder.db")
    stats_file = _resolve_path(os.getenv("STATS_FILE"), "data/stats.json")

    log_dir.mkdir(parents=True, exist_ok=True)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    stats_file.parent.mkdir(parents=True, exist_ok=True)

    _maybe_write_secret_file(
        credentials_file,
        os.getenv("GOOGLE_CLIENT_SECRETS_JSON"),
        os.getenv("GOOGLE_CLIENT_SECRETS_B64"),
    )
    _maybe_write_secret_file(
        token_file,
        os.getenv("GOOGLE_TOKEN_JSON"),
        os.getenv("GOOGLE_TOKEN_B64"),
    )

    min_interval, max_interval = _intervals(os.getenv("POLL_MIN_SECONDS"), os.getenv("POLL_MAX_SECONDS"))

    account = AccountConfig(
        credentials_file=credentials_file,
        token_file=token_file,
        user_id=os.getenv("GMAIL_USER_ID", "me"),
        client=ClientOverrides(
            client_id=os.getenv("CLIENT_ID"),
            client_secret=os.getenv("CLIENT_SECRET"),
            redirect_uri=os.getenv("REDIRECT_URI"),
        ),
    )

    return AppConfig(
        account=account,
        label_name=os.getenv("AUTO_REPLY_LABEL", DEFAULT_LABEL),
        signature=os.getenv("REPLY_SIGNATURE", DEFAULT_SIGNATURE),
        min_interval=min_interval,
        max_interval=max_interval,
        log_dir=log_dir,
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        db_path=db_path,
        replied_store_enabled=_flag(os.getenv("REPLIED_STORE"), True),
        stats_file=stats_file,
    )
