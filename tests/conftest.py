"""Shared fixtures."""

import fnmatch
from typing import Any, Dict, List, Optional

import pytest


# MARK: - Redis

class FakeRedis:
    """Subset of redis.asyncio.Redis used by LegislativeCache."""

    def __init__(self):
        self.store: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.fail = False

    def _check(self) -> None:
        if self.fail:
            raise ConnectionError("redis down")

    async def get(self, key: str) -> Optional[str]:
        self._check()
        return self.store.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self._check()
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        self._check()
        self.store[key] = value
        if ex is not None:
            self.ttls[key] = ex
        return True

    async def delete(self, *keys: str) -> int:
        self._check()
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def scan_iter(self, match: str = "*", count: Optional[int] = None):
        self._check()
        for key in list(self.store):
            if fnmatch.fnmatchcase(key, match):
                yield key

    async def keys(self, pattern: str = "*") -> List[str]:
        self._check()
        return [key for key in self.store if fnmatch.fnmatchcase(key, pattern)]

    async def ping(self) -> bool:
        self._check()
        return True

    async def info(self, section: Optional[str] = None) -> Dict[str, Any]:
        self._check()
        return {"used_memory_human": "1M", "connected_clients": 1}

    async def dbsize(self) -> int:
        self._check()
        return len(self.store)

    async def ttl(self, key: str) -> int:
        self._check()
        return self.ttls.get(key, -1)

    async def aclose(self) -> None:
        pass

    async def close(self) -> None:
        pass


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


# MARK: - Settings

@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Deterministic secrets and cheap bcrypt for every test."""
    from src.config import settings

    monkeypatch.setattr(settings.auth, "jwt_secret", "test-jwt-secret")
    monkeypatch.setattr(settings.auth, "bcrypt_rounds", 4)
    monkeypatch.setattr(settings.sync, "legislative_sync_secret", "sync-secret")
    monkeypatch.setattr(settings.sync, "cron_secret", "cron-secret")
    monkeypatch.setattr(settings.legiscan, "api_key", "test-key")
    return settings
