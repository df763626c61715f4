from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Callable, Dict, Iterable

import click
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from services.errors import AuthorizationError, CredentialError
from utils.config import AccountConfig

LOGGER = logging.getLogger(__name__)
SCOPES: Iterable[str] = (
    "https://www.googleapis.com/auth/gmail.readonly",
    "https://www.googleapis.com/auth/gmail.modify",
)
AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"
DEFAULT_REDIRECT_URI = "http://localhost"

_TOKEN_LOCK = threading.Lock()


class AuthService:
    """Handle OAuth2 credential lifecycle for the responder's Gmail account.

    The cached token is read on every call to :meth:`authenticate`. When no
    token exists the console flow prints an authorization URL and waits for
    the code to be pasted back.
    """

    def __init__(
        self,
        account: AccountConfig,
        prompt: Callable[[str], str] | None = None,
        echo: Callable[[str], None] | None = None,
        flow_factory: Callable[..., Flow] | None = None,
    ):
        self._account = account
        self._prompt = prompt or click.prompt
        self._echo = echo or click.echo
        self._flow_factory = flow_factory or Flow.from_client_config

    def client_config(self) -> Dict[str, Dict]:
        """Return the OAuth client in the ``installed`` shape google-auth-oauthlib expects."""

        overrides = self._account.client
        if overrides.complete:
            LOGGER.debug("Using OAuth client from environment")
            return _installed(overrides.client_id, overrides.client_secret, overrides.redirect_uri)

        secrets_path: Path = self._account.credentials_file
        try:
            data = json.loads(secrets_path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise CredentialError(f"Client secrets file not found: {secrets_path}") from exc
        except (OSError, ValueError) as exc:
            raise CredentialError(f"Error loading client secret file {secrets_path}: {exc}") from exc

        section = data.get("installed") or data.get("web") or data
        client_id = overrides.client_id or section.get("client_id")
        client_secret = overrides.client_secret or section.get("client_secret")
        redirect_uri = overrides.redirect_uri or section.get("redirect_uri")
        if not redirect_uri and section.get("redirect_uris"):
            redirect_uri = section["redirect_uris"][0]
        if not client_id or not client_secret:
            raise CredentialError(f"{secrets_path} is missing client_id or client_secret")
        return _installed(client_id, client_secret, redirect_uri)

    def _save_credentials(self, creds: Credentials) -> None:
        LOGGER.debug("Persisting OAuth tokens to %s", self._account.token_file)
        with _TOKEN_LOCK:
            self._account.token_file.parent.mkdir(parents=True, exist_ok=True)
            self._account.token_file.write_text(creds.to_json(), encoding="utf-8")

    def _load_existing_credentials(self) -> Credentials | None:
        token_path: Path = self._account.token_file
        if not token_path.exists():
            return None
        LOGGER.debug("Loading cached credential from %s", token_path)
        try:
            data = json.loads(token_path.read_text(encoding="utf-8"))
            return Credentials.from_authorized_user_info(data, SCOPES)
        except (OSError, ValueError) as exc:
            raise CredentialError(f"Token file {token_path} is unreadable: {exc}") from exc

    def authenticate(self, interactive: bool = True) -> Credentials:
        creds = self._load_existing_credentials()
        if creds and creds.expired and creds.refresh_token:
            LOGGER.info("Refreshing expired Gmail token")
            try:
                creds.refresh(Request())
            except GoogleAuthError as exc:
                raise CredentialError(f"Could not refresh Gmail token: {exc}") from exc
            self._save_credentials(creds)
            return creds

        if creds and creds.valid:
            return creds

        if not interactive:
            raise CredentialError(
                f"No usable token at {self._account.token_file}; run the authorize command first"
            )
        return self.authorize_interactively()

    def authorize_interactively(self) -> Credentials:
        client_config = self.client_config()
        redirect_uri = client_config["installed"]["redirect_uris"][0]
        flow = self._flow_factory(client_config, scopes=list(SCOPES), redirect_uri=redirect_uri)
        auth_url, _ = flow.authorization_url(access_type="offline", prompt="consent")
        self._echo(f"Authorize this app by visiting this url: {auth_url}")
        code = self._prompt("Enter the code from that page here").strip()
        if not code:
            raise AuthorizationError("No authorization code entered")

        try:
            flow.fetch_token(code=code)
        except Exception as exc:  # noqa: BLE001 - oauthlib and requests raise unrelated types
            LOGGER.error("Error retrieving access token: %s", exc)
            raise AuthorizationError(f"Error retrieving access token: {exc}") from exc

        creds = flow.credentials
        self._save_credentials(creds)
        self._echo(f"Token stored to {self._account.token_file}")
        return creds


def _installed(client_id: str, client_secret: str, redirect_uri: str | None) -> Dict[str, Dict]:
    return {
        "installed": {
            "client_id": client_id,
            "client_secret": client_secret,
            "auth_uri": AUTH_URI,
            "token_uri": TOKEN_URI,
            "redirect_uris": [redirect_uri or DEFAULT_REDIRECT_URI],
        }
    }
