from __future__ import annotations

import base64
import re
from email.header import Header

from models.email_message import EmailMessage
from models.outcome import OutgoingReply

REPLY_SUBJECT = "Automatic Reply"
ANGLE_ADDRESS = re.compile(r"<([^>]+)>")
LINE_BREAKS = re.compile(r"[\r\n]+")
BODY_TEMPLATE = (
    "Hello,",
    "",
    "Thank you for your email. I am currently on vacation and will not be able to respond until my return.",
    "",
    "Best regards,",
    "{signature}",
)


def extract_reply_address(email: EmailMessage) -> str:
    """Return the address inside ``<...>`` of the From header, else the raw value.

    Line breaks are dropped so the value can never start a new header line.
    """

    sender = email.header("From")
    if sender is None:
        return ""
    match = ANGLE_ADDRESS.search(sender)
    if match:
        return LINE_BREAKS.sub("", match.group(1))
    return LINE_BREAKS.sub("", sender)


def encode_subject(subject: str) -> str:
    return Header(subject, "utf-8").encode()


class ReplyComposer:
    """Build the canned vacation reply for a message."""

    def __init__(self, signature: str):
        self.signature = signature

    def body(self) -> str:
        return "\n".join(BODY_TEMPLATE).format(signature=self.signature)

    def compose(self, email: EmailMessage) -> OutgoingReply:
        to = extract_reply_address(email)
        body = self.body()
        message = "".join(
            [
                'Content-Type: text/plain; charset="UTF-8"\n',
                "MIME-Version: 1.0\n",
                "Content-Transfer-Encoding: 7bit\n",
                f"to: {to}\n",
                f"subject: {encode_subject(REPLY_SUBJECT)}\n\n",
                body,
            ]
        )
        raw = base64.urlsafe_b64encode(message.encode("utf-8")).decode("ascii").rstrip("=")
        return OutgoingReply(to=to, subject=REPLY_SUBJECT, body=body, raw=raw)
