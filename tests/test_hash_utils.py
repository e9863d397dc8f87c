from uuid import uuid4

from src.models.feed import FeedFilters, FeedItemType

from src.utils.hash_utils import (
    calculate_hash,
    compute_response_hash,
    generate_filters_hash,
)


def test_calculate_hash_ignores_key_order() -> None:
    assert calculate_hash({"a": 1, "b": [1, 2]}) == calculate_hash({"b": [1, 2], "a": 1})


def test_calculate_hash_detects_content_changes() -> None:
    assert calculate_hash({"title": "Original"}) != calculate_hash({"title": "Updated"})


def test_generate_filters_hash_is_short_and_url_safe() -> None:
    fingerprint = generate_filters_hash({"type": ["vote_result"], "subjects": ["Education"], "limit": 50})

    assert len(fingerprint) == 16
    assert not set(fingerprint) & {"=", "+", "/"}
    assert fingerprint == generate_filters_hash({"limit": 50, "subjects": ["Education"], "type": ["vote_result"]})


def test_generate_filters_hash_differs_per_filter_set() -> None:
    assert generate_filters_hash({"page": 1}) != generate_filters_hash({"page": 2})


def test_compute_response_hash_binds_user_and_poll() -> None:
    user_id, poll_id = str(uuid4()), str(uuid4())
    data = {"answer": "yes"}

    digest = compute_response_hash(user_id, poll_id, data)

    assert len(digest) == 64
    assert digest == compute_response_hash(user_id, poll_id, {"answer": "yes"})
    assert digest != compute_response_hash(str(uuid4()), poll_id, data)
    assert digest != compute_response_hash(user_id, poll_id, {"answer": "no"})


def test_generate_filters_hash_separates_feed_pages_and_filters() -> None:
    filter_sets = [
        FeedFilters(limit=20, offset=0),
        FeedFilters(limit=20, offset=20),
        FeedFilters(limit=20, offset=40),
        FeedFilters(limit=20, offset=0, type=[FeedItemType.VOTE_RESULT]),
        FeedFilters(limit=20, offset=0, subjects=["Education"]),
        FeedFilters(limit=20, offset=0, subjects=["Taxation"]),
    ]

    fingerprints = {generate_filters_hash(filters.cache_payload()) for filters in filter_sets}

    assert len(fingerprints) == len(filter_sets)
