"""Host events the plugin reacts to, and a minimal dispatcher for them."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union
from collections.abc import Callable, Mapping

from .models import Package


class EventKind(str, Enum):
    COMMAND = "command"
    POST_PACKAGE_INSTALL = "post-package-install"
    POST_PACKAGE_UPDATE = "post-package-update"
    PRE_PACKAGE_UNINSTALL = "pre-package-uninstall"


@dataclass(frozen=True)
class InstallOperation:
    package: Package


@dataclass(frozen=True)
class UpdateOperation:
    initial_package: Package
    target_package: Package


@dataclass(frozen=True)
class UninstallOperation:
    package: Package


Operation = Union[InstallOperation, UpdateOperation, UninstallOperation]


@dataclass(frozen=True)
class CommandEvent:
    """A host command is about to run with the given options."""

    command: str
    options: Mapping[str, Any] = field(default_factory=dict)

    def get_option(self, name: str) -> Any:
        return self.options.get(name)


@dataclass(frozen=True)
class PackageEvent:
    """A package operation happened (or is about to)."""

    operation: Operation


Event = Union[CommandEvent, PackageEvent]
Handler = Callable[[Any], None]


class EventDispatcher:
    """Map each event kind to the handlers subscribed to it."""

    def __init__(self) -> None:
        self._handlers: dict[EventKind, list[Handler]] = {kind: [] for kind in EventKind}

    def subscribe(self, kind: EventKind, handler: Handler) -> None:
        self._handlers[kind].append(handler)

    def add_subscriber(self, subscriptions: Mapping[EventKind, Handler]) -> None:
        for kind, handler in subscriptions.items():
            self.subscribe(kind, handler)

    def dispatch(self, kind: EventKind, event: Event) -> None:
        for handler in list(self._handlers[kind]):
            handler(event)
