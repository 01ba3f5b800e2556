"""
Map provider bootstrap.

Loads the external mapping library at most once per process, however many
tracking widgets mount at the same time. Widgets obtain the shared
bootstrap through ``get_provider_bootstrap`` and await ``ensure_loaded``.

Lifecycle: IDLE -> LOADING -> READY, or LOADING -> FAILED. FAILED is
terminal until ``reset`` is called on an explicit user retry.
"""

import asyncio
import importlib
import logging
import sys
import threading
from enum import Enum
from types import ModuleType
from typing import Callable, Dict, Optional

from ordertrack.client.errors import ProviderLoadFailed

logger = logging.getLogger(__name__)

Loader = Callable[[str], ModuleType]


class BootstrapState(str, Enum):
    IDLE = "IDLE"
    LOADING = "LOADING"
    READY = "READY"
    FAILED = "FAILED"


class MapProviderBootstrap:
    def __init__(self, module_name: str, loader: Optional[Loader] = None):
        self.module_name = module_name
        self._loader = loader or importlib.import_module
        self.state = BootstrapState.IDLE
        self.module: Optional[ModuleType] = None
        self.error: Optional[ProviderLoadFailed] = None
        self.load_attempts = 0
        self._pending: Optional[asyncio.Future] = None

    @property
    def ready(self) -> bool:
        return self.state == BootstrapState.READY

    @property
    def failed(self) -> bool:
        return self.state == BootstrapState.FAILED

    async def ensure_loaded(self) -> ModuleType:
        """
        Load the library, or join the load already in progress.

        Returns:
            The loaded module

        Raises:
            ProviderLoadFailed: The library could not be loaded (now or earlier)
        """
        if self.state == BootstrapState.READY:
            return self.module
        if self.state == BootstrapState.FAILED:
            raise self.error

        if self._pending is None:
            # Already imported elsewhere: nothing to load
            existing = sys.modules.get(self.module_name)
            if existing is not None:
                self._mark_ready(existing)
                return existing
            self.state = BootstrapState.LOADING
            self.load_attempts += 1
            self._pending = asyncio.ensure_future(self._load())

        return await asyncio.shield(self._pending)

    async def wait_ready(self) -> ModuleType:
        return await self.ensure_loaded()

    def reset(self) -> None:
        """Forget a failed load so the next ``ensure_loaded`` tries again."""
        if self.state == BootstrapState.LOADING:
            return
        self.state = BootstrapState.IDLE
        self.error = None
        self.module = None
        self._pending = None

    async def _load(self) -> ModuleType:
        logger.info("Loading map provider %s", self.module_name)
        try:
            module = await asyncio.to_thread(self._loader, self.module_name)
        except Exception as exc:
            self.state = BootstrapState.FAILED
            self.error = ProviderLoadFailed(f"{type(exc).__name__}: {exc}")
            logger.error("Map provider %s failed to load: %s", self.module_name, exc)
            raise self.error from exc
        self._mark_ready(module)
        return module

    def _mark_ready(self, module: ModuleType) -> None:
        self.module = module
        self.state = BootstrapState.READY
        logger.debug("Map provider %s ready", self.module_name)


_registry: Dict[str, MapProviderBootstrap] = {}
_registry_lock = threading.Lock()


def get_provider_bootstrap(module_name: str, loader: Optional[Loader] = None) -> MapProviderBootstrap:
    """Process-wide bootstrap for ``module_name``; created on first use."""
    with _registry_lock:
        bootstrap = _registry.get(module_name)
        if bootstrap is None:
            bootstrap = MapProviderBootstrap(module_name, loader=loader)
            _registry[module_name] = bootstrap
        return bootstrap


def reset_provider_bootstraps() -> None:
    with _registry_lock:
        _registry.clear()
