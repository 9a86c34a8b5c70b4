from __future__ import annotations

import json
from pathlib import Path
from typing import Any


class FakeProcess:
    """Process executor returning canned output per command line."""

    def __init__(self, responses: dict[str, tuple[int, str]] | None = None, available: bool = True):
        self.responses = dict(responses or {})
        self.calls: list[str] = []
        self.available = available

    def is_available(self) -> bool:
        return self.available

    def execute(self, command, cwd=None) -> tuple[int, str]:
        line = command if isinstance(command, str) else " ".join(command)
        self.calls.append(line)
        return self.responses.get(line, (128, ""))


def write_manifest(root: Path, relative: str, data: Any) -> Path:
    directory = root / relative if relative else root
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "composer.json"
    if isinstance(data, str):
        path.write_text(data, encoding="utf-8")
    else:
        path.write_text(json.dumps(data, indent=4), encoding="utf-8")
    return directory
