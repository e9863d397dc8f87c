from uuid import uuid4

from src.cache.legislative_cache import LegislativeCache
from src.db.repositories.user_repository import UserTargeting
from src.models.feed import FeedFilters, FeedItemType
from src.services.legislative_feed_service import LegislativeFeedService


class RecordingFeedItems:
    def __init__(self):
        self.queries = []

    async def get_user_feed(self, districts, interests, filters):
        self.queries.append((districts, interests, filters))
        return []


class TargetingUsers:
    async def get_targeting(self, user_id):
        return UserTargeting(districts=["HD-012"], interests=["Education"])


async def test_each_filter_set_gets_its_own_cache_entry(fake_redis) -> None:
    feed_items = RecordingFeedItems()
    service = LegislativeFeedService(feed_items, TargetingUsers(), LegislativeCache(client=fake_redis))
    user_id = uuid4()
    filter_sets = [
        FeedFilters(limit=20, offset=0),
        FeedFilters(limit=20, offset=20),
        FeedFilters(limit=20, offset=0, type=[FeedItemType.VOTE_RESULT]),
        FeedFilters(limit=20, offset=0, subjects=["Education"]),
    ]

    for filters in filter_sets:
        await service.get_user_feed(user_id, filters)

    assert [query[2] for query in feed_items.queries] == filter_sets
    assert len(fake_redis.store) == len(filter_sets)


async def test_repeated_filter_set_is_served_from_cache(fake_redis) -> None:
    feed_items = RecordingFeedItems()
    service = LegislativeFeedService(feed_items, TargetingUsers(), LegislativeCache(client=fake_redis))
    user_id = uuid4()

    await service.get_user_feed(user_id, FeedFilters(limit=20, offset=20))
    await service.get_user_feed(user_id, FeedFilters(limit=20, offset=20))

    assert len(feed_items.queries) == 1
