from __future__ import annotations

import pytest

from tests.helpers import FakeGmail


@pytest.fixture
def fake_gmail() -> FakeGmail:
    return FakeGmail()
