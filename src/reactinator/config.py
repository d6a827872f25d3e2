"""Layered TOML configuration with hot reload support."""

import asyncio
import logging
import tomllib
from collections.abc import Callable, Coroutine
from copy import deepcopy
from pathlib import Path
from typing import Any

from watchfiles import awatch

logger = logging.getLogger(__name__)


class Config:
    """Layered configuration with hot reload.

    Loads a base config and optionally merges an overlay config on top.
    Supports async watching for changes with callbacks.
    """

    def __init__(
        self,
        base_path: Path | str,
        overlay_path: Path | str | None = None,
    ):
        self.base_path = Path(base_path) if isinstance(base_path, str) else base_path
        self.overlay_path = Path(overlay_path) if isinstance(overlay_path, str) else overlay_path
        self._config: dict[str, Any] = {}
        self._callbacks: list[Callable[[dict[str, Any]], Coroutine[Any, Any, None]]] = []
        self._watch_task: asyncio.Task | None = None

    def load(self) -> None:
        """Load the base config and merge the overlay on top."""
        if not self.base_path.exists():
            raise FileNotFoundError(f"Base config not found: {self.base_path}")

        with open(self.base_path, "rb") as f:
            base = tomllib.load(f)

        if self.overlay_path and self.overlay_path.exists():
            try:
                with open(self.overlay_path, "rb") as f:
                    overlay = tomllib.load(f)
                self._config = self._deep_merge(base, overlay)
            except tomllib.TOMLDecodeError as e:
                logger.warning("Invalid overlay TOML, using base only: %s", e)
                self._config = base
        else:
            self._config = base

    def _deep_merge(self, base: dict, overlay: dict) -> dict:
        """Deep merge overlay into base. Overlay values override base."""
        result = deepcopy(base)
        for key, value in overlay.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = deepcopy(value)
        return result

    def get(self, *keys: str, default: Any = None) -> Any:
        """Get a nested configuration value.

        Args:
            *keys: Path of keys to traverse (e.g., 'reactions', 'timeout')
            default: Value to return if path doesn't exist

        Returns:
            The config value or default
        """
        value = self._config
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def on_change(self, callback: Callable[[dict[str, Any]], Coroutine[Any, Any, None]]) -> None:
        """Register a callback for config changes.

        Callback receives the new merged config dict.
        """
        self._callbacks.append(callback)

    async def start_watching(self) -> None:
        """Start watching config files for changes."""
        if self._watch_task is not None:
            return

        paths_to_watch: list[Path] = [self.base_path.parent]
        if self.overlay_path and self.overlay_path.parent != self.base_path.parent:
            paths_to_watch.append(self.overlay_path.parent)

        self._watch_task = asyncio.create_task(self._watch(paths_to_watch))
        logger.info("Config watcher started for: %s", [str(p) for p in paths_to_watch])

    async def stop_watching(self) -> None:
        """Stop watching config files."""
        if self._watch_task:
            self._watch_task.cancel()
            try:
                await self._watch_task
            except asyncio.CancelledError:
                pass
            self._watch_task = None
            logger.info("Config watcher stopped")

    async def _watch(self, paths: list[Path]) -> None:
        """Watch paths for changes and trigger reload."""
        try:
            async for changes in awatch(*paths, debounce=2000):
                for _change_type, changed_path in changes:
                    changed = Path(changed_path)
                    if changed == self.base_path or changed == self.overlay_path:
                        logger.info("Config changed: %s", changed)
                        await self.reload()
                        break  # Only reload once per change batch
        except asyncio.CancelledError:
            pass

    async def reload(self) -> None:
        """Reload from disk and notify callbacks. Errors are logged, not raised."""
        try:
            self.load()
        except Exception as e:
            logger.error("Config reload error: %s", e)
            return

        for callback in self._callbacks:
            try:
                await callback(self._config)
            except Exception as e:
                logger.error("Config callback error: %s", e)

    @property
    def data(self) -> dict[str, Any]:
        """Get the full merged config dict (read-only copy)."""
        return deepcopy(self._config)
