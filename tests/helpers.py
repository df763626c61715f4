from __future__ import annotations

from typing import Dict, List, Sequence

from models.email_message import EmailMessage
from models.label import Label
from services.errors import GmailError


def make_message(message_id: str = "msg-1", headers: Sequence[tuple[str, str]] = (), body: str = "") -> EmailMessage:
    return EmailMessage(
        id=message_id,
        thread_id=f"thread-{message_id}",
        headers=list(headers),
        body=body,
        labels=["INBOX", "UNREAD"],
    )


class FakeGmail:
    """In-memory stand-in for GmailService that records every call."""

    def __init__(self, messages: Sequence[EmailMessage] = (), labels: Sequence[Label] = ()):
        self.messages: Dict[str, EmailMessage] = {message.id: message for message in messages}
        self.labels: List[Label] = list(labels)
        self.calls: List[tuple] = []
        self.sent: List[str] = []
        self.modified: List[tuple[str, List[str], List[str]]] = []
        self.failures: Dict[str, GmailError] = {}

    def fail(self, operation: str, status: int | None = None) -> None:
        self.failures[operation] = GmailError(operation, "boom", status)

    def _check(self, operation: str) -> None:
        if operation in self.failures:
            raise self.failures[operation]

    def list_unread_ids(self) -> List[str]:
        self.calls.append(("list",))
        self._check("list")
        return list(self.messages)

    def get_message(self, message_id: str) -> EmailMessage:
        self.calls.append(("get", message_id))
        self._check("get")
        return self.messages[message_id]

    def send_raw(self, raw: str) -> Dict:
        self.calls.append(("send",))
        self._check("send")
        self.sent.append(raw)
        return {"id": f"sent-{len(self.sent)}"}

    def list_labels(self) -> List[Label]:
        self.calls.append(("labels.list",))
        self._check("labels.list")
        return list(self.labels)

    def create_label(self, label_name: str) -> Label:
        self.calls.append(("labels.create", label_name))
        self._check("labels.create")
        label = Label(name=label_name, id=f"Label_{len(self.labels) + 1}")
        self.labels.append(label)
        return label

    def modify_labels(self, message_id: str, add: Sequence[str] = (), remove: Sequence[str] = ()) -> Dict:
        self.calls.append(("modify", message_id))
        self._check("modify")
        self.modified.append((message_id, list(add), list(remove)))
        return {"id": message_id}

    def operations(self) -> List[str]:
        return [call[0] for call in self.calls]
