"""Caching layer for function registries.

``RegistryCache`` memoizes one registry per directory key for the
lifetime of a run; callers own it and pass it explicitly. Scans are also
persisted in .cache/<project_hash>/ keyed on source path + newest
source mtime, so unchanged trees are not re-lexed between runs.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from pathlib import Path
from typing import Callable

from uaftriage.errors import RegistryError
from uaftriage.skills.registry.records import Registry
from uaftriage.skills.registry.scanner import C_SUFFIXES

logger = logging.getLogger(__name__)


class RegistryCache:
    """Single-assignment memo of ``directory -> Registry``.

    Each key is populated at most once, even when several threads ask
    for the same directory concurrently.
    """

    def __init__(self, loader: Callable[[str], Registry]) -> None:
        self._loader = loader
        self._entries: dict[str, Registry] = {}
        self._lock = threading.Lock()

    def get(self, source_dir: str) -> Registry:
        key = _key(source_dir)
        registry = self._entries.get(key)
        if registry is not None:
            return registry
        with self._lock:
            registry = self._entries.get(key)
            if registry is None:
                registry = self._loader(source_dir)
                self._entries[key] = registry
        return registry

    def __contains__(self, source_dir: str) -> bool:
        return _key(source_dir) in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def _key(source_dir: str) -> str:
    return Path(source_dir).resolve().as_posix()


def _project_hash(source_dir: str) -> str:
    """Deterministic hash for a source path."""
    return hashlib.sha256(_key(source_dir).encode()).hexdigest()[:16]


def _cache_dir(source_dir: str) -> Path:
    return Path(source_dir).resolve() / ".cache" / _project_hash(source_dir)


def sources_mtime(source_dir: str) -> float:
    """Newest mtime across C sources under *source_dir*, or 0 if none."""
    newest = 0.0
    for path in Path(source_dir).resolve().rglob("*"):
        if path.suffix in C_SUFFIXES and path.is_file():
            newest = max(newest, path.stat().st_mtime)
    return newest


def _cache_key(source_dir: str) -> str:
    """Key incorporating source mtime so stale caches are ignored."""
    return f"{_project_hash(source_dir)}:{sources_mtime(source_dir)}"


def load_registry_cache(source_dir: str) -> Registry | None:
    """Load a cached registry if it exists and is fresh."""
    d = _cache_dir(source_dir)
    meta_file = d / "registry_meta.json"
    registry_file = d / "registry.json"

    if not meta_file.exists() or not registry_file.exists():
        return None

    try:
        meta = json.loads(meta_file.read_text())
        if not isinstance(meta, dict) or meta.get("key") != _cache_key(source_dir):
            logger.debug("registry cache is stale", extra={"source_dir": source_dir})
            return None
        return Registry.from_dict(json.loads(registry_file.read_text()))
    except (json.JSONDecodeError, RegistryError) as exc:
        logger.warning(
            "ignoring unreadable registry cache",
            extra={"source_dir": source_dir, "error": str(exc)},
        )
        return None


def save_registry_cache(source_dir: str, registry: Registry) -> None:
    """Persist a registry to disk."""
    d = _cache_dir(source_dir)
    d.mkdir(parents=True, exist_ok=True)

    (d / "registry_meta.json").write_text(json.dumps({"key": _cache_key(source_dir)}))
    (d / "registry.json").write_text(json.dumps(registry.to_dict()))
