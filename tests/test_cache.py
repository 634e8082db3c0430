"""
Query cache tests.

Verifies:
  - Fresh entries are served without calling the loader
  - Entries go stale after stale_time
  - invalidate() marks every key sharing the prefix
"""

import pytest

from quicknotes.core.cache import QueryCache


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _counting_loader(values):
    calls = []

    async def loader():
        calls.append(1)
        return values[len(calls) - 1]

    return loader, calls


@pytest.mark.asyncio
async def test_fresh_entry_skips_loader():
    cache = QueryCache(stale_time=60, clock=FakeClock())
    loader, calls = _counting_loader(["first", "second"])

    assert await cache.fetch(("posts", "g1"), loader) == "first"
    assert await cache.fetch(("posts", "g1"), loader) == "first"
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_entry_goes_stale_after_stale_time():
    clock = FakeClock()
    cache = QueryCache(stale_time=60, clock=clock)
    loader, calls = _counting_loader(["first", "second"])

    await cache.fetch(("posts", "g1"), loader)
    clock.now = 60.0

    assert cache.is_stale(("posts", "g1"))
    assert await cache.fetch(("posts", "g1"), loader) == "second"
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_invalidate_by_prefix():
    cache = QueryCache(clock=FakeClock())
    cache.set(("posts", "g1"), [])
    cache.set(("posts", "u1"), [])
    cache.set(("profile", "u1"), {})

    assert cache.invalidate(("posts",)) == 2

    assert cache.is_stale(("posts", "g1"))
    assert cache.is_stale(("posts", "u1"))
    assert not cache.is_stale(("profile", "u1"))
    # данные остаются доступны до перезапроса
    assert cache.get(("posts", "g1")) == []


def test_clear_drops_everything():
    cache = QueryCache(clock=FakeClock())
    cache.set(("posts", None), [])

    cache.clear()

    assert cache.get(("posts", None)) is None
    assert cache.is_stale(("posts", None))
