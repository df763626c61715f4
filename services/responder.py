from __future__ import annotations

import logging
from typing import Optional

from models.outcome import MessageResult, Outcome, Stage
from services.email_classifier import EmailClassifier
from services.errors import GmailError
from services.gmail_service import GmailService
from services.label_service import LabelManager
from services.persistence_service import RepliedStore
from services.reply_composer import ReplyComposer

LOGGER = logging.getLogger(__name__)


class AutoResponder:
    """Run one unread message through classify, reply and label.

    Gmail failures never escape :meth:`process`; they come back as a
    ``FAILED`` result naming the stage. A message is recorded in the replied
    store only after its reply was sent, so a failed send is retried by the
    next poll.
    """

    def __init__(
        self,
        gmail: GmailService,
        classifier: EmailClassifier,
        composer: ReplyComposer,
        label_name: str,
        replied_store: Optional[RepliedStore] = None,
    ):
        self._gmail = gmail
        self._classifier = classifier
        self._composer = composer
        self._labels = LabelManager(gmail)
        self._label_name = label_name
        self._replied_store = replied_store

    def process(self, message_id: str) -> MessageResult:
        if self._replied_store and self._replied_store.has_replied(message_id):
            LOGGER.info("Message %s was answered in an earlier cycle", message_id)
            failure = self._label(message_id)
            return failure or MessageResult(message_id, Outcome.PREVIOUSLY_HANDLED)

        try:
            email = self._gmail.get_message(message_id)
        except GmailError as exc:
            return _failed(message_id, Stage.FETCH, exc)

        if self._classifier.already_replied(email):
            LOGGER.info("Email already replied: %s", message_id)
            return MessageResult(message_id, Outcome.ALREADY_REPLIED)

        reply = self._composer.compose(email)
        try:
            self._gmail.send_raw(reply.raw)
        except GmailError as exc:
            return _failed(message_id, Stage.SEND, exc, recipient=reply.to)
        LOGGER.info("Reply sent: %s", reply.to or "(no sender address)")

        if self._replied_store:
            self._replied_store.mark_replied(message_id, reply.to)

        failure = self._label(message_id, recipient=reply.to)
        if failure:
            failure.sent = True
            return failure
        return MessageResult(message_id, Outcome.REPLIED, recipient=reply.to, sent=True)

    def _label(self, message_id: str, recipient: str | None = None) -> Optional[MessageResult]:
        try:
            label_id = self._labels.ensure_label(self._label_name)
            self._labels.apply_label(message_id, label_id)
        except GmailError as exc:
            return _failed(message_id, Stage.LABEL, exc, recipient=recipient)
        return None


def _failed(message_id: str, stage: Stage, exc: GmailError, recipient: str | None = None) -> MessageResult:
    LOGGER.warning("Giving up on message %s at %s stage: %s", message_id, stage.value, exc)
    return MessageResult(message_id, Outcome.FAILED, recipient=recipient, stage=stage, error=str(exc))
