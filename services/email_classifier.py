from __future__ import annotations

import logging

from models.email_message import EmailMessage

LOGGER = logging.getLogger(__name__)
REPLY_MARKER_HEADER = "In-Reply-To"


class EmailClassifier:
    """Decide whether a fetched message already carries a reply marker.

    Header names are compared exactly as Gmail delivers them; ``in-reply-to``
    does not count.
    """

    def __init__(self, marker_header: str = REPLY_MARKER_HEADER):
        self.marker_header = marker_header

    def already_replied(self, email: EmailMessage) -> bool:
        replied = email.has_header(self.marker_header)
        LOGGER.debug("Message %s already replied: %s", email.id, replied)
        return replied
