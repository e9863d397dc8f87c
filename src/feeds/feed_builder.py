"""
Feed Builder Infrastructure
===========================
RSS 2.0 and Atom syndication of legislative feed items.

Responsibility: Render feed items as RFC-compliant RSS/Atom documents
"""

from datetime import datetime, time, timezone
from typing import Iterable, List, Optional
from enum import Enum
from feedgen.feed import FeedGenerator
from feedgen.entry import FeedEntry

from ..config import settings
from ..models.feed import FeedItem


class FeedFormat(str, Enum):
    """Supported feed formats"""
    RSS = "rss"
    ATOM = "atom"


def build_guid(state: str, item: FeedItem) -> str:
    """
    Stable GUID for a feed item.

    Format: ``{state}:{type}:{bill_id|-}:{roll_call_id|-}:{item id}``

    Examples:
        nv:bill_introduced:1234:-:9a1c...
        nv:vote_result:1234:5678:0b7e...
    """
    parts = [
        state.lower(),
        item.type.value,
        str(item.bill_id) if item.bill_id is not None else "-",
        str(item.roll_call_id) if item.roll_call_id is not None else "-",
        str(item.id),
    ]
    return ":".join(parts)


class FeedBuilder:
    """
    Builds RSS/Atom feeds with feedgen.

    Example:
        builder = FeedBuilder(
            title="Nevada Legislature",
            description="Bills and votes",
            feed_url="https://citizenly.app/api/v1/legislative/feed.rss"
        )
        builder.add_items(items)
        xml = builder.generate(FeedFormat.RSS)
    """

    def __init__(
        self,
        title: str,
        description: str,
        feed_url: str,
        link: Optional[str] = None,
        language: str = "en-US",
        author_name: Optional[str] = None,
    ):
        """
        Args:
            title: Feed title
            description: Feed description
            feed_url: URL of the feed itself (self link)
            link: URL of the website (defaults to the public base URL)
            language: Feed language code
            author_name: Feed author (defaults to the app name)
        """
        self.fg = FeedGenerator()
        self.fg.id(feed_url)
        self.fg.title(title)
        self.fg.description(description)
        self.fg.link(href=link or settings.app.public_base_url, rel='alternate')
        self.fg.link(href=feed_url, rel='self')
        self.fg.language(language)
        self.fg.author({'name': author_name or settings.app.app_name})
        self.fg.generator(f"{settings.app.app_name} Feed Generator", uri=settings.app.public_base_url)
        self.fg.lastBuildDate(datetime.now(timezone.utc))

        self._entries: List[FeedEntry] = []

    def add_entry(
        self,
        title: str,
        link: str,
        description: str,
        guid: str,
        pub_date: Optional[datetime] = None,
        categories: Optional[List[str]] = None,
    ) -> FeedEntry:
        entry = self.fg.add_entry(order='append')
        entry.id(guid)
        entry.title(title)
        entry.link(href=link)
        entry.description(description or title)
        entry.guid(guid, permalink=False)

        pub_date = pub_date or datetime.now(timezone.utc)
        if pub_date.tzinfo is None:
            pub_date = pub_date.replace(tzinfo=timezone.utc)
        entry.pubDate(pub_date)
        entry.updated(pub_date)

        for category in categories or []:
            entry.category(term=category)

        self._entries.append(entry)
        return entry

    def add_items(self, items: Iterable[FeedItem]) -> None:
        """Add legislative feed items, linking each to its bill page."""
        state = settings.legiscan.state
        base = settings.app.public_base_url.rstrip("/")

        for item in items:
            link = f"{base}/legislative"
            if item.bill_id is not None:
                link = f"{base}/legislative/bills/{item.bill_id}"

            self.add_entry(
                title=item.title,
                link=link,
                description=item.description or "",
                guid=build_guid(state, item),
                pub_date=datetime.combine(item.action_date, time.min, tzinfo=timezone.utc),
                categories=[item.type.value, *item.subjects],
            )

    def generate(self, format: FeedFormat = FeedFormat.RSS) -> str:
        """
        Serialize the feed.

        Returns:
            XML string of the feed
        """
        if format == FeedFormat.RSS:
            return self.fg.rss_str(pretty=True).decode('utf-8')
        elif format == FeedFormat.ATOM:
            return self.fg.atom_str(pretty=True).decode('utf-8')
        raise ValueError(f"Unsupported format: {format}")

    def get_entry_count(self) -> int:
        return len(self._entries)
