from src.cache.legislative_cache import LegislativeCache, with_cache


async def test_entities_are_stored_with_fixed_ttls(fake_redis) -> None:
    cache = LegislativeCache(client=fake_redis)

    await cache.set_bill(1, {"bill_number": "AB1"})
    await cache.set_legislator(2, {"name": "Jane"})
    await cache.set_session(3, {"session_name": "83rd"})
    await cache.set_roll_call(4, {"desc": "Third Reading"})
    await cache.set_user_feed("u1", "abc", [{"id": 1}])

    assert fake_redis.ttls == {
        "bill:1": 14400,
        "legislator:2": 86400,
        "session:3": 43200,
        "rollcall:4": 3600,
        "feed:user:u1:abc": 900,
    }
    assert await cache.get_bill(1) == {"bill_number": "AB1"}
    assert await cache.get_user_feed("u1", "abc") == [{"id": 1}]


async def test_invalidate_bill_drops_bill_and_all_user_feeds(fake_redis) -> None:
    cache = LegislativeCache(client=fake_redis)
    await cache.set_bill(1, {"bill_number": "AB1"})
    await cache.set_bill(2, {"bill_number": "AB2"})
    await cache.set_user_feed("u1", "a", [])
    await cache.set_user_feed("u2", "b", [])

    await cache.invalidate_bill_data(1)

    assert set(fake_redis.store) == {"bill:2"}


async def test_invalidate_single_user_feed(fake_redis) -> None:
    cache = LegislativeCache(client=fake_redis)
    await cache.set_user_feed("u1", "a", [])
    await cache.set_user_feed("u1", "b", [])
    await cache.set_user_feed("u2", "a", [])

    assert await cache.invalidate_user_feed("u1") == 2
    assert set(fake_redis.store) == {"feed:user:u2:a"}


def test_legiscan_key_sorts_params() -> None:
    assert LegislativeCache.legiscan_key("getBill", {"id": 5, "state": "NV"}) == "legiscan:getBill:id:5|state:NV"


async def test_redis_failures_are_swallowed(fake_redis) -> None:
    cache = LegislativeCache(client=fake_redis)
    fake_redis.fail = True

    await cache.set_bill(1, {"x": 1})
    assert await cache.get_bill(1) is None
    assert await cache.invalidate_user_feeds() == 0
    assert await cache.health_check() is False


async def test_disabled_cache_always_misses() -> None:
    cache = LegislativeCache(enabled=False)

    await cache.set_bill(1, {"x": 1})

    assert await cache.get_bill(1) is None
    assert await cache.health_check() is False
    assert await cache.get_cache_stats() == {"health": False, "key_count": 0}


async def test_with_cache_fetches_once() -> None:
    store = {}
    calls = []

    async def fetch():
        calls.append(1)
        return [1, 2]

    async def set_cache(value):
        store["v"] = value

    async def get_cache():
        return store.get("v")

    assert await with_cache(fetch, set_cache, get_cache) == [1, 2]
    assert await with_cache(fetch, set_cache, get_cache) == [1, 2]
    assert len(calls) == 1


async def test_reference_data_round_trips(fake_redis) -> None:
    cache = LegislativeCache(client=fake_redis)

    await cache.set_legislator(501, {"name": "Jane Doe"})
    await cache.set_session(2172, {"session_name": "83rd (2025)"})
    await cache.set_district_info("HD-012", {"members": [501]})
    await cache.set_user_interests("u1", {"subjects": ["Education"]})
    await cache.set_legiscan_response("getBill", {"id": 1001}, {"status": "OK"})
    await cache.set_legiscan_response("getSessionList", {"state": "NV"}, {"status": "OK"}, ttl=60)

    assert await cache.get_legislator(501) == {"name": "Jane Doe"}
    assert await cache.get_session(2172) == {"session_name": "83rd (2025)"}
    assert await cache.get_district_info("HD-012") == {"members": [501]}
    assert await cache.get_user_interests("u1") == {"subjects": ["Education"]}
    assert await cache.get_legiscan_response("getBill", {"id": 1001}) == {"status": "OK"}
    assert fake_redis.ttls["district:HD-012"] == 86400
    assert fake_redis.ttls["interests:u1"] == 7200
    assert fake_redis.ttls["legiscan:getBill:id:1001"] == 3600
    assert fake_redis.ttls["legiscan:getSessionList:state:NV"] == 60
