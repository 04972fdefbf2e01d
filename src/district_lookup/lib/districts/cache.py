"""Expiring ZIP-to-district cache over a pluggable key/value backend."""

import asyncio
import json
import os
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import ValidationError

from district_lookup.schemas.district import CacheEntry, MultiDistrictMapping, SingleDistrictMapping

DEFAULT_TTL = timedelta(days=30)
DEFAULT_CLEANUP_THRESHOLD = 1000


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CacheBackend(ABC):
    """Key/value persistence for serialized cache entries."""

    @abstractmethod
    async def get(self, key: str) -> dict[str, Any] | None:
        """Return the stored value or None."""

    @abstractmethod
    async def set(self, key: str, value: dict[str, Any]) -> None:
        """Store a value, replacing any existing one."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a key if present."""

    @abstractmethod
    async def items(self) -> list[tuple[str, dict[str, Any]]]:
        """Snapshot of every stored key/value pair."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove everything."""

    @abstractmethod
    async def size(self) -> int:
        """Number of stored keys."""

    async def delete_many(self, keys: list[str]) -> None:
        for key in keys:
            await self.delete(key)


class InMemoryCacheBackend(CacheBackend):
    """Process-local dict backend."""

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}

    async def get(self, key: str) -> dict[str, Any] | None:
        return self._data.get(key)

    async def set(self, key: str, value: dict[str, Any]) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def items(self) -> list[tuple[str, dict[str, Any]]]:
        return list(self._data.items())

    async def clear(self) -> None:
        self._data.clear()

    async def size(self) -> int:
        return len(self._data)


class JsonFileCacheBackend(InMemoryCacheBackend):
    """JSON-file backend: a map keyed by ZIP code, flushed on every write.

    The file is loaded once at construction. Each mutation rewrites the whole
    file through a temporary file and an atomic rename, off the event loop.

    Args:
        path: Location of the JSON cache file.
    """

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self.path = Path(path)
        self._flush_lock = asyncio.Lock()
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load district cache from {self.path}: {e}")
            return
        if not isinstance(data, dict):
            logger.warning(f"Ignoring district cache at {self.path}: expected a JSON object")
            return
        self._data = {k: v for k, v in data.items() if isinstance(v, dict)}
        logger.debug(f"Loaded {len(self._data)} district cache entries from {self.path}")

    async def _flush(self) -> bool:
        """Rewrite the cache file from memory.

        A failed write is logged and leaves the in-memory map authoritative;
        the next successful flush writes the full map, bringing the file back
        in step.

        Returns:
            True when the file was written.
        """
        payload = json.dumps(self._data, indent=2, sort_keys=True)
        async with self._flush_lock:
            try:
                await asyncio.to_thread(self._write, payload)
            except OSError as e:
                logger.warning(f"Failed to write district cache to {self.path}: {e}")
                return False
        return True

    def _write(self, payload: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(payload, encoding="utf-8")
        os.replace(tmp_path, self.path)

    async def set(self, key: str, value: dict[str, Any]) -> None:
        await super().set(key, value)
        await self._flush()

    async def delete(self, key: str) -> None:
        if key not in self._data:
            return
        await super().delete(key)
        await self._flush()

    async def delete_many(self, keys: list[str]) -> None:
        for key in keys:
            self._data.pop(key, None)
        if keys:
            await self._flush()

    async def clear(self) -> None:
        await super().clear()
        await self._flush()


@dataclass
class CacheStats:
    """Point-in-time cache statistics."""

    size: int
    expired: int
    hits: int
    misses: int
    oldest_entry: datetime | None
    newest_entry: datetime | None

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class CacheStore:
    """ZIP-keyed district mapping cache with per-entry expiry.

    Entries are replaced wholesale on write. Once the backend holds more than
    ``cleanup_threshold`` keys, a write triggers a purge of expired entries.

    Args:
        backend: Persistence backend; in-memory when omitted.
        default_ttl: Lifetime applied when ``set`` is called without a TTL.
        cleanup_threshold: Size above which expired entries are purged.
        clock: Timezone-aware time source, injectable for tests.
    """

    def __init__(
        self,
        backend: CacheBackend | None = None,
        *,
        default_ttl: timedelta = DEFAULT_TTL,
        cleanup_threshold: int = DEFAULT_CLEANUP_THRESHOLD,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.backend = backend if backend is not None else InMemoryCacheBackend()
        self.default_ttl = default_ttl
        self.cleanup_threshold = cleanup_threshold
        self._clock = clock
        self.hits = 0
        self.misses = 0

    async def _load_entry(self, zip_code: str) -> CacheEntry | None:
        raw = await self.backend.get(zip_code)
        if raw is None:
            return None
        try:
            return CacheEntry.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Dropping unreadable district cache entry for {zip_code}: {e.error_count()} errors")
            await self.backend.delete(zip_code)
            return None

    async def get(
        self,
        zip_code: str,
        max_age: timedelta | None = None,
    ) -> SingleDistrictMapping | MultiDistrictMapping | None:
        """Look up a live cache entry.

        Args:
            zip_code: 5-digit ZIP code.
            max_age: Optional maximum time since the entry was written.

        Returns:
            The cached mapping, or None on a miss or expired entry.
        """
        entry = await self._load_entry(zip_code)
        now = self._clock()
        if entry is None or entry.expires_at <= now or (max_age is not None and now - entry.cached_at > max_age):
            self.misses += 1
            return None
        self.hits += 1
        return entry.mapping

    async def get_stale(
        self,
        zip_code: str,
        max_age: timedelta,
    ) -> SingleDistrictMapping | MultiDistrictMapping | None:
        """Return an entry regardless of expiry, if written within ``max_age``."""
        entry = await self._load_entry(zip_code)
        if entry is None or self._clock() - entry.cached_at > max_age:
            return None
        return entry.mapping

    async def set(
        self,
        zip_code: str,
        mapping: SingleDistrictMapping | MultiDistrictMapping,
        ttl: timedelta | None = None,
    ) -> None:
        """Store a mapping, replacing any previous entry for the ZIP code."""
        now = self._clock()
        entry = CacheEntry(
            zip_code=zip_code,
            mapping=mapping,
            expires_at=now + (ttl if ttl is not None else self.default_ttl),
            cached_at=now,
        )
        await self.backend.set(zip_code, entry.model_dump(mode="json", by_alias=True))

        if await self.backend.size() > self.cleanup_threshold:
            await self.cleanup_expired()

    async def delete(self, zip_code: str) -> None:
        await self.backend.delete(zip_code)

    async def clear(self) -> None:
        await self.backend.clear()
        self.hits = 0
        self.misses = 0

    async def _entries(self) -> list[CacheEntry]:
        entries = []
        for key, raw in await self.backend.items():
            try:
                entries.append(CacheEntry.model_validate(raw))
            except ValidationError:
                logger.debug(f"Skipping unreadable district cache entry {key}")
        return entries

    async def cleanup_expired(self) -> int:
        """Remove every expired entry.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        expired = [entry.zip_code for entry in await self._entries() if entry.expires_at <= now]
        await self.backend.delete_many(expired)
        if expired:
            logger.debug(f"Purged {len(expired)} expired district cache entries")
        return len(expired)

    async def stats(self) -> CacheStats:
        entries = await self._entries()
        now = self._clock()
        written = [entry.cached_at for entry in entries]
        return CacheStats(
            size=len(entries),
            expired=sum(1 for entry in entries if entry.expires_at <= now),
            hits=self.hits,
            misses=self.misses,
            oldest_entry=min(written) if written else None,
            newest_entry=max(written) if written else None,
        )
