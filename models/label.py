from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Label:
    """Gmail label as returned by users.labels.list."""

    name: str
    id: str
