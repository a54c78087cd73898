from stockquotes_mcp.infrastructure.caching.ttl_response_cache import TTLResponseCache


def test_returns_value_until_ttl_elapses(response_cache, fake_timer):
    response_cache.set("quote:AAPL:all", "cached", 300)

    fake_timer.advance(299)
    assert response_cache.get("quote:AAPL:all") == "cached"

    fake_timer.advance(1)
    assert response_cache.get("quote:AAPL:all") is None


def test_each_entry_keeps_its_own_ttl(response_cache, fake_timer):
    response_cache.set("quote:AAPL:all", "quote", 300)
    response_cache.set("search:apple", "search", 1800)

    fake_timer.advance(600)

    assert response_cache.get("quote:AAPL:all") is None
    assert response_cache.get("search:apple") == "search"


def test_missing_key_is_none(response_cache):
    assert response_cache.get("nope") is None


def test_non_positive_ttl_is_not_stored(response_cache):
    response_cache.set("k", "v", 0)
    assert response_cache.get("k") is None


def test_size_is_bounded(fake_timer):
    cache = TTLResponseCache(max_size=2, timer=fake_timer)
    cache.set("a", 1, 60)
    cache.set("b", 2, 60)
    cache.set("c", 3, 60)

    assert len(cache) == 2
    assert cache.get("c") == 3


def test_clear_drops_everything(response_cache):
    response_cache.set("a", 1, 60)
    response_cache.set("b", 2, 60)

    response_cache.clear()

    assert len(response_cache) == 0
    assert response_cache.get("a") is None
