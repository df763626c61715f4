from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class Outcome(str, Enum):
    REPLIED = "replied"
    ALREADY_REPLIED = "already_replied"
    PREVIOUSLY_HANDLED = "previously_handled"
    FAILED = "failed"


class Stage(str, Enum):
    FETCH = "fetch"
    SEND = "send"
    LABEL = "label"


@dataclass(frozen=True, slots=True)
class OutgoingReply:
    """Auto-reply ready to be handed to users.messages.send."""

    to: str
    subject: str
    body: str
    raw: str


@dataclass(slots=True)
class MessageResult:
    message_id: str
    outcome: Outcome
    recipient: str | None = None
    stage: Optional[Stage] = None
    error: str | None = None
    sent: bool = False

    @property
    def failed(self) -> bool:
        return self.outcome is Outcome.FAILED


@dataclass(slots=True)
class CycleReport:
    """Everything one poll cycle did, including a cycle-level error if listing never happened."""

    started_at: datetime
    results: List[MessageResult] = field(default_factory=list)
    error: str | None = None

    def count(self, outcome: Outcome) -> int:
        return sum(1 for result in self.results if result.outcome is outcome)

    @property
    def replied(self) -> int:
        return self.count(Outcome.REPLIED)

    @property
    def sent(self) -> int:
        return sum(1 for result in self.results if result.sent)

    @property
    def failures(self) -> int:
        return sum(1 for result in self.results if result.failed)

    @property
    def ok(self) -> bool:
        return self.error is None and not self.failures
