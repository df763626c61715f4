from __future__ import annotations

import base64
import logging
from typing import Any, Dict, List, Sequence

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from models.email_message import EmailMessage, Header
from models.label import Label
from services.errors import GmailError

LOGGER = logging.getLogger(__name__)
UNREAD_QUERY = "is:unread"
INBOX_LABEL = "INBOX"


class GmailService:
    """Wrapper around the Gmail API for the operations the responder needs.

    Every call goes through :meth:`_execute`, so callers only ever see
    :class:`GmailError` for API and transport failures.
    """

    def __init__(self, client: Any, user_id: str = "me"):
        self._client = client
        self._user_id = user_id

    @classmethod
    def from_credentials(cls, creds: Credentials, user_id: str = "me") -> "GmailService":
        client = build("gmail", "v1", credentials=creds, cache_discovery=False)
        return cls(client, user_id)

    @property
    def user_id(self) -> str:
        return self._user_id

    def list_unread_ids(self) -> List[str]:
        """Return ids of every unread message in the inbox, following pagination."""

        messages = self._client.users().messages()
        ids: List[str] = []
        page_token = None
        while True:
            kwargs: Dict[str, Any] = {"userId": self.user_id, "labelIds": [INBOX_LABEL], "q": UNREAD_QUERY}
            if page_token:
                kwargs["pageToken"] = page_token
            response = self._execute("list", messages.list(**kwargs))
            ids.extend(message["id"] for message in response.get("messages", []) or [])
            page_token = response.get("nextPageToken")
            if not page_token:
                break
        LOGGER.info("Found %s unread inbox message(s)", len(ids))
        return ids

    def get_message(self, message_id: str) -> EmailMessage:
        request = self._client.users().messages().get(userId=self.user_id, id=message_id, format="full")
        response = self._execute("get", request)
        payload = response.get("payload", {}) or {}
        return EmailMessage(
            id=response.get("id", message_id),
            thread_id=response.get("threadId"),
            headers=_headers_to_pairs(payload.get("headers", []) or []),
            body=_extract_body(payload),
            labels=list(response.get("labelIds", []) or []),
        )

    def send_raw(self, raw: str) -> Dict:
        request = self._client.users().messages().send(userId=self.user_id, body={"raw": raw})
        response = self._execute("send", request)
        LOGGER.debug("Sent message %s", response.get("id"))
        return response

    def list_labels(self) -> List[Label]:
        response = self._execute("labels.list", self._client.users().labels().list(userId=self.user_id))
        return [Label(name=item["name"], id=item["id"]) for item in response.get("labels", []) or []]

    def create_label(self, label_name: str) -> Label:
        body = {"name": label_name, "labelListVisibility": "labelShow", "messageListVisibility": "show"}
        request = self._client.users().labels().create(userId=self.user_id, body=body)
        response = self._execute("labels.create", request)
        LOGGER.info("Created label %s with id %s", label_name, response["id"])
        return Label(name=response.get("name", label_name), id=response["id"])

    def modify_labels(
        self,
        message_id: str,
        add: Sequence[str] = (),
        remove: Sequence[str] = (),
    ) -> Dict:
        body = {"addLabelIds": list(add), "removeLabelIds": list(remove)}
        request = self._client.users().messages().modify(userId=self.user_id, id=message_id, body=body)
        response = self._execute("modify", request)
        LOGGER.debug("Modified labels on %s: +%s -%s", message_id, list(add), list(remove))
        return response

    def _execute(self, operation: str, request: Any) -> Dict:
        try:
            return request.execute()
        except HttpError as exc:
            status = getattr(exc.resp, "status", None)
            reason = getattr(exc, "reason", None) or str(exc)
            LOGGER.error("The API returned an error during %s: %s", operation, reason)
            raise GmailError(operation, reason, int(status) if status else None) from exc
        except (OSError, httplib2.HttpLib2Error, GoogleAuthError) as exc:
            LOGGER.error("Transport error during %s: %s", operation, exc)
            raise GmailError(operation, str(exc)) from exc


def _headers_to_pairs(headers: Sequence[Dict[str, str]]) -> List[Header]:
    return [(header.get("name", ""), header.get("value", "")) for header in headers]


def _extract_body(payload: Dict) -> str:
    if "body" in payload and (payload["body"] or {}).get("data"):
        return _decode_base64(payload["body"]["data"])
    for part in payload.get("parts", []) or []:
        mime_type = part.get("mimeType", "")
        if mime_type == "text/plain":
            data = part.get("body", {}).get("data")
            if data:
                return _decode_base64(data)
        if part.get("parts"):
            nested = _extract_body(part)
            if nested:
                return nested
    return ""


def _decode_base64(data: str) -> str:
    padded = data + "=" * (-len(data) % 4)
    try:
        decoded = base64.urlsafe_b64decode(padded).decode("utf-8")
    except (ValueError, UnicodeDecodeError):
        return ""
    return decoded
