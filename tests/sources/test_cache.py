from property_matrix.sources.cache import TimedCache


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_cache_is_fresh_until_ttl_expires() -> None:
    clock = FakeClock()
    cache = TimedCache(ttl=300, clock=clock)

    assert cache.get() is None
    assert cache.is_fresh() is False

    cache.set({"owners": []})
    clock.now += 299
    assert cache.get() == {"owners": []}

    clock.now += 1
    assert cache.is_fresh() is False
    assert cache.get() is None
    # the stale value is still held for inspection
    assert cache.value == {"owners": []}


def test_cache_clear_and_timestamp_iso() -> None:
    cache = TimedCache(ttl=60, clock=FakeClock(0.0))
    assert cache.timestamp_iso is None

    cache.set("snapshot")
    assert cache.timestamp_iso == "1970-01-01T00:00:00+00:00"
    assert repr(cache) == "TimedCache(ttl=60, fresh)"

    cache.clear()
    assert cache.value is None
    assert cache.timestamp is None
    assert repr(cache) == "TimedCache(ttl=60, stale)"
