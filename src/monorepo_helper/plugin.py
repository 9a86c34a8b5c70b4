"""Plugin bootstrap: wire the monorepo repository into a resolver."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol
from collections.abc import Callable, Mapping

from .config import ConfigError, PluginConfiguration, is_truthy, load_configuration
from .events import (
    CommandEvent,
    EventDispatcher,
    EventKind,
    InstallOperation,
    PackageEvent,
    UninstallOperation,
    UpdateOperation,
)
from .loader import ArrayLoader
from .models import Package
from .process import ProcessExecutor
from .repository import ArrayRepository, MonorepoRepository, RepositoryManager
from .versioning import MonorepoVersionGuesser, VcsVersionGuesser
from .workspaces import deregister_workspace, has_frontend_assets, register_workspace

logger = logging.getLogger(__name__)

ROOT_VERSION_ENV_VAR = "COMPOSER_ROOT_VERSION"
DEFAULT_ROOT_VERSION = "1.0.0"


class InstallationManager(Protocol):
    def get_install_path(self, package: Package) -> Path | None: ...


@dataclass
class ResolverContext:
    """What the host resolver hands to the plugin on activation."""

    working_dir: Path
    root_manifest: dict[str, Any] = field(default_factory=dict)
    repository_manager: RepositoryManager = field(default_factory=RepositoryManager)
    dispatcher: EventDispatcher = field(default_factory=EventDispatcher)
    installation_manager: InstallationManager | None = None
    home: Path | None = None
    process: ProcessExecutor = field(default_factory=ProcessExecutor)
    environ: Mapping[str, str] = field(default_factory=lambda: os.environ)


def resolve_root_version(
    manifest: Mapping[str, Any],
    vcs_guesser: VcsVersionGuesser,
    path: Path,
    environ: Mapping[str, str],
) -> str:
    """Return the root package version the way the resolver would report it."""
    if environ.get(ROOT_VERSION_ENV_VAR):
        return environ[ROOT_VERSION_ENV_VAR]
    version = manifest.get("version")
    if isinstance(version, str) and version:
        return version
    guess = vcs_guesser.guess_version(manifest, path)
    if guess is not None:
        return guess.pretty_version
    return DEFAULT_ROOT_VERSION


class Plugin:
    """Monorepo helper plugin."""

    def __init__(self) -> None:
        # Replaced with the monorepo repository in activate().
        self.repository: ArrayRepository = ArrayRepository([])
        self.configuration: PluginConfiguration | None = None
        self.context: ResolverContext | None = None
        self.monorepo_path: Path | None = None

    @property
    def active(self) -> bool:
        return isinstance(self.repository, MonorepoRepository)

    def activate(self, context: ResolverContext) -> bool:
        """Register the monorepo repository; return False when staying inert."""
        self.context = context
        try:
            self.configuration = load_configuration(context.root_manifest, context.environ)
        except ConfigError as exc:
            logger.error("Plugin is disabled because its configuration is invalid: %s", exc)
            return False

        if not self.configuration.enabled:
            logger.info("Plugin is configured to be disabled.")
            return False

        context.dispatcher.add_subscriber(self.subscribed_events())

        monorepo_root = self._find_monorepo_root(context, self.configuration)
        if monorepo_root is None:
            return False

        process = context.process
        self.monorepo_path = monorepo_root
        vcs_guesser = VcsVersionGuesser(process)
        monorepo_guesser = MonorepoVersionGuesser(
            monorepo_root, vcs_guesser, process, self.configuration
        )
        root_version = resolve_root_version(
            context.root_manifest, vcs_guesser, context.working_dir, context.environ
        )
        self.repository = MonorepoRepository(
            monorepo_root,
            self.configuration,
            ArrayLoader(),
            process,
            monorepo_guesser,
            vcs_guesser,
            root_version,
            context.environ,
        )
        # Listed ahead of every other repository so monorepo dev versions win.
        context.repository_manager.prepend_repository(self.repository)
        return True

    def _find_monorepo_root(
        self, context: ResolverContext, configuration: PluginConfiguration
    ) -> Path | None:
        forced_root = configuration.forced_monorepo_root
        if forced_root is None:
            code, output = context.process.execute(
                ["git", "rev-parse", "--absolute-git-dir"], cwd=context.working_dir
            )
            if code == 0 and output.strip():
                root = Path(output.strip()).parent
                logger.info("Detected monorepo root: %s", root)
                return root
            logger.info(
                "Plugin is disabled because no GIT root found in %s directory",
                Path(context.working_dir).resolve(),
            )
            return None

        base_candidates = [Path(context.working_dir).resolve()]
        if context.home is not None:
            base_candidates.append(Path(context.home))
        for base in base_candidates:
            logger.debug("Monorepo base path candidate is %s.", base)
            candidate = Path(os.path.normpath(base / forced_root))
            logger.debug("Monorepo root candidate is %s.", candidate)
            if (candidate / ".git").is_dir():
                logger.warning("Forced monorepo root is %s.", candidate)
                return candidate

        logger.info(
            "Plugin is disabled because forced monorepo root does not seem to be a valid GIT root."
        )
        return None

    def subscribed_events(self) -> dict[EventKind, Callable[[Any], None]]:
        return {
            EventKind.COMMAND: self.on_command,
            EventKind.POST_PACKAGE_INSTALL: self.on_package_install,
            EventKind.POST_PACKAGE_UPDATE: self.on_package_update,
            EventKind.PRE_PACKAGE_UNINSTALL: self.on_package_uninstall,
        }

    def _enabled(self) -> bool:
        return self.configuration is not None and self.configuration.enabled

    def on_command(self, event: CommandEvent) -> None:
        if not self._enabled() or not isinstance(self.repository, MonorepoRepository):
            return

        if self.context is not None and not self.context.process.is_available():
            self.repository.disable(
                "Plugin is disabled because the git executable is not available."
            )
            return

        prefer_lowest = event.get_option("prefer-lowest")
        if prefer_lowest is True or (isinstance(prefer_lowest, str) and is_truthy(prefer_lowest)):
            self.repository.disable("Plugin is disabled on prefer-lowest installs.")

    def on_package_install(self, event: PackageEvent) -> None:
        if self._enabled():
            self._register_frontend_workspace(event)

    def on_package_update(self, event: PackageEvent) -> None:
        if self._enabled():
            self._register_frontend_workspace(event)

    def on_package_uninstall(self, event: PackageEvent) -> None:
        if self._enabled():
            self._deregister_frontend_workspace(event)

    def _install_path(self, package: Package) -> Path | None:
        if self.context is None or self.context.installation_manager is None:
            return None
        return self.context.installation_manager.get_install_path(package)

    def _register_frontend_workspace(self, event: PackageEvent) -> None:
        operation = event.operation
        if isinstance(operation, InstallOperation):
            package = operation.package
        elif isinstance(operation, UpdateOperation):
            package = operation.target_package
        else:
            return

        package_path = self._install_path(package)
        if package_path is None or self.monorepo_path is None:
            return
        if not has_frontend_assets(package_path):
            return

        logger.debug("Frontend assets detected in the %s package.", package.name)
        register_workspace(self.monorepo_path, package_path, package.name)

    def _deregister_frontend_workspace(self, event: PackageEvent) -> None:
        if not isinstance(event.operation, UninstallOperation):
            return

        package = event.operation.package
        package_path = self._install_path(package)
        if package_path is None or self.monorepo_path is None:
            return
        if not has_frontend_assets(package_path):
            return

        logger.debug("Deregistering workspace related to %s package.", package.name)
        deregister_workspace(self.monorepo_path, package_path, package.name)
