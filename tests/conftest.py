from __future__ import annotations

import pytest

from .helpers import FakeProcess


@pytest.fixture
def fake_process():
    def _make(
        responses: dict[str, tuple[int, str]] | None = None, available: bool = True
    ) -> FakeProcess:
        return FakeProcess(responses, available)

    return _make
