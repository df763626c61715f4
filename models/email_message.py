from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

Header = Tuple[str, str]


@dataclass(frozen=True, slots=True)
class EmailMessage:
    """Fetched Gmail message with its headers in delivery order."""

    id: str
    thread_id: str | None
    headers: List[Header] = field(default_factory=list)
    body: str = ""
    labels: List[str] = field(default_factory=list)

    def header(self, name: str) -> Optional[str]:
        """Return the first header value whose name matches exactly."""
        for header_name, value in self.headers:
            if header_name == name:
                return value
        return None

    def has_header(self, name: str) -> bool:
        return any(header_name == name for header_name, _ in self.headers)
