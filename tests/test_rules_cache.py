# tests/test_rules_cache.py

from types import SimpleNamespace

from app.services.rules_cache import RuleCache, RuleSnapshot


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _loader(counter, ppu=10):
    def load():
        counter.append(1)
        return [SimpleNamespace(id=1, sector="Costura", model="Modelo-X", operation="Remalle", points_per_unit=ppu)]
    return load


def test_same_version_within_ttl_is_cached():
    calls = []
    cache = RuleCache(ttl_seconds=60, clock=FakeClock())

    first = cache.get("1", _loader(calls))
    second = cache.get("1", _loader(calls))

    assert first is second
    assert len(calls) == 1
    assert isinstance(first[0], RuleSnapshot)


def test_new_version_reloads():
    calls = []
    cache = RuleCache(ttl_seconds=60, clock=FakeClock())

    cache.get("1", _loader(calls, ppu=10))
    rules = cache.get("2", _loader(calls, ppu=12))

    assert len(calls) == 2
    assert rules[0].points_per_unit == 12


def test_ttl_expiry_reloads():
    calls = []
    clock = FakeClock()
    cache = RuleCache(ttl_seconds=60, clock=clock)

    cache.get("1", _loader(calls))
    clock.now = 61
    cache.get("1", _loader(calls))

    assert len(calls) == 2


def test_invalidate_forces_reload():
    calls = []
    cache = RuleCache(ttl_seconds=60, clock=FakeClock())

    cache.get("1", _loader(calls))
    cache.invalidate()
    cache.get("1", _loader(calls))

    assert len(calls) == 2
