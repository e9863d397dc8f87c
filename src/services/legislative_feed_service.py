"""
Personalized legislative feed and interests.

Responsibility: Serve cached per-user feeds and manage followed subjects/districts
"""

from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from ..cache.legislative_cache import LegislativeCache, legislative_cache, with_cache
from ..db.repositories.feed_repository import FeedItemRepository
from ..db.repositories.user_repository import UserRepository
from ..exceptions import ValidationError
from ..models.feed import FeedFilters, FeedItem, FeedItemType, LegislativeInterests

logger = logging.getLogger(__name__)

INTEREST_FIELDS = ("subjects", "follow_districts", "notification_types")


def validate_interest_updates(payload: Dict[str, Any]) -> Dict[str, List[str]]:
    """
    Validate a partial interests update.

    Every provided field must be a list of strings and notification types
    must name feed item types.

    Raises:
        ValidationError: On the first invalid field
    """
    updates: Dict[str, List[str]] = {}

    for field_name in INTEREST_FIELDS:
        if field_name not in payload or payload[field_name] is None:
            continue
        value = payload[field_name]
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise ValidationError(f"{field_name} must be an array of strings", field=field_name)
        updates[field_name] = value

    valid_types = {item_type.value for item_type in FeedItemType}
    invalid = [t for t in updates.get("notification_types", []) if t not in valid_types]
    if invalid:
        raise ValidationError(
            f"Invalid notification types: {', '.join(invalid)}",
            field="notification_types"
        )

    return updates


class LegislativeFeedService:
    """
    Feed reads with a read-through Redis cache.

    Example:
        service = LegislativeFeedService(FeedItemRepository(session), UserRepository(session))
        items = await service.get_user_feed(user.id, FeedFilters(limit=20))
    """

    def __init__(
        self,
        feed_items: FeedItemRepository,
        users: UserRepository,
        cache: Optional[LegislativeCache] = None
    ):
        self.feed_items = feed_items
        self.users = users
        self.cache = cache or legislative_cache

    async def get_user_feed(self, user_id: UUID, filters: FeedFilters) -> List[FeedItem]:
        """
        Feed items targeted at a user's districts and interests.

        Cached per user and filter set for 15 minutes.
        """
        filters_hash = self.cache.generate_filters_hash(filters.cache_payload())
        cache_user = str(user_id)

        async def fetch() -> List[Dict[str, Any]]:
            targeting = await self.users.get_targeting(user_id)
            items = await self.feed_items.get_user_feed(
                targeting.districts,
                targeting.interests,
                filters
            )
            return [item.model_dump(mode="json") for item in items]

        async def store(items: List[Dict[str, Any]]) -> None:
            await self.cache.set_user_feed(cache_user, filters_hash, items)

        async def load() -> Optional[List[Dict[str, Any]]]:
            return await self.cache.get_user_feed(cache_user, filters_hash)

        raw_items = await with_cache(fetch, store, load)
        return [FeedItem.model_validate(item) for item in raw_items]

    async def get_public_feed(self, limit: int = 50) -> List[FeedItem]:
        """Most recent items for the syndicated RSS/Atom feed."""
        return await self.feed_items.get_recent(limit)

    async def get_interests(self, user_id: UUID) -> LegislativeInterests:
        cache_user = str(user_id)

        async def fetch() -> Dict[str, Any]:
            row = await self.users.get_or_create_interests(user_id)
            return LegislativeInterests.model_validate(row).model_dump(mode="json")

        async def store(interests: Dict[str, Any]) -> None:
            await self.cache.set_user_interests(cache_user, interests)

        async def load() -> Optional[Dict[str, Any]]:
            return await self.cache.get_user_interests(cache_user)

        return LegislativeInterests.model_validate(await with_cache(fetch, store, load))

    async def update_interests(self, user_id: UUID, payload: Dict[str, Any]) -> LegislativeInterests:
        """
        Apply a validated interests update and drop the user's cached data.

        Raises:
            ValidationError: If the payload is malformed
        """
        updates = validate_interest_updates(payload)
        row = await self.users.update_interests(user_id, updates)

        await self.cache.invalidate_user_interests(str(user_id))
        await self.cache.invalidate_user_feed(str(user_id))

        logger.info(f"Updated legislative interests for {user_id}: {sorted(updates)}")
        return LegislativeInterests.model_validate(row)
