from __future__ import annotations

import pytest

from app.read_cache import ReadCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_entries_expire_after_ttl() -> None:
    clock = FakeClock()
    cache = ReadCache(ttl_seconds=60, clock=clock)
    cache.put(("members", "2025-06"), [1, 2, 3])

    clock.now = 59.9
    assert cache.get(("members", "2025-06")) == [1, 2, 3]

    clock.now = 60.0
    assert cache.get(("members", "2025-06")) is None
    assert len(cache) == 0


def test_oldest_entry_is_evicted_when_full() -> None:
    cache = ReadCache(max_entries=2, clock=FakeClock())
    cache.put("a", 1)
    cache.put("b", 2)
    cache.put("c", 3)

    assert cache.get("a") is None
    assert cache.get("b") == 2
    assert cache.get("c") == 3


def test_get_or_load_caches_loaded_values_but_not_none() -> None:
    cache = ReadCache(clock=FakeClock())
    calls: list[str] = []

    def loader() -> list[str]:
        calls.append("load")
        return ["row"]

    assert cache.get_or_load("key", loader) == ["row"]
    assert cache.get_or_load("key", loader) == ["row"]
    assert calls == ["load"]

    assert cache.get_or_load("missing", lambda: None) is None
    assert len(cache) == 1


def test_clear_drops_every_entry() -> None:
    cache = ReadCache(clock=FakeClock())
    cache.put("a", 1)
    cache.put("b", 2)

    cache.clear()

    assert len(cache) == 0
    assert cache.get("a") is None


@pytest.mark.parametrize(("ttl", "size"), [(0, 10), (-1, 10), (10, 0)])
def test_rejects_invalid_configuration(ttl: float, size: int) -> None:
    with pytest.raises(ValueError):
        ReadCache(ttl_seconds=ttl, max_entries=size)
