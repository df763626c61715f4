from __future__ import annotations

import logging

from services.errors import GmailError
from services.gmail_service import INBOX_LABEL, GmailService

LOGGER = logging.getLogger(__name__)


class LabelManager:
    """Look up or create labels and move labelled messages out of the inbox."""

    def __init__(self, gmail: GmailService):
        self._gmail = gmail

    def find_label(self, label_name: str) -> str | None:
        for label in self._gmail.list_labels():
            if label.name == label_name:
                return label.id
        return None

    def ensure_label(self, label_name: str) -> str:
        existing = self.find_label(label_name)
        if existing:
            LOGGER.debug("Label %s already exists as %s", label_name, existing)
            return existing
        try:
            return self._gmail.create_label(label_name).id
        except GmailError as exc:
            if not exc.is_conflict:
                raise
            LOGGER.info("Label %s was created concurrently, looking it up again", label_name)
            label_id = self.find_label(label_name)
            if label_id is None:
                raise
            return label_id

    def apply_label(self, message_id: str, label_id: str) -> None:
        self._gmail.modify_labels(message_id, add=[label_id], remove=[INBOX_LABEL])
        LOGGER.info("Labelled message %s and removed it from %s", message_id, INBOX_LABEL)
