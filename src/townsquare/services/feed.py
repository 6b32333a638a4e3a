"""Feed composition: ranked, keyset-paginated views over posts."""
from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import and_, or_

from townsquare.core.errors import ValidationFailure
from townsquare.core.settings import settings
from townsquare.db.time import days_ago
from townsquare.models import Channel, Location, Post, UserProfile
from townsquare.schemas.common import AuthorSummary, ChannelSummary
from townsquare.schemas.feed import FeedPage
from townsquare.schemas.post import PostResponse, PostSummary
from townsquare.services.store import EntityStore, retry_read

SCOPE_CHANNEL = "channel"
SCOPE_LOCATION = "location"
SCOPE_ALL = "all"
SCOPE_POPULAR = "popular"

# Total order of every feed: score, then recency, then id as the final tie-break.
FEED_ORDER = (Post.score.desc(), Post.created_at.desc(), Post.id.desc())


@dataclass(frozen=True)
class FeedScope:
    """Filtering dimension of a feed request."""

    kind: str
    id: int | None = None

    @classmethod
    def channel(cls, channel_id: int) -> FeedScope:
        return cls(SCOPE_CHANNEL, channel_id)

    @classmethod
    def location(cls, location_id: int) -> FeedScope:
        return cls(SCOPE_LOCATION, location_id)

    @classmethod
    def all(cls) -> FeedScope:
        return cls(SCOPE_ALL)

    @classmethod
    def popular(cls) -> FeedScope:
        return cls(SCOPE_POPULAR)


@dataclass(frozen=True)
class FeedCursor:
    """Position after the last row of a page: ``(score, created_at, id)``."""

    score: int
    created_at: datetime
    id: int

    @classmethod
    def after(cls, post: Post) -> FeedCursor:
        return cls(post.score, post.created_at, post.id)

    def encode(self) -> str:
        payload = f"{self.score}|{self.created_at.isoformat()}|{self.id}"
        return base64.urlsafe_b64encode(payload.encode()).decode().rstrip("=")

    @classmethod
    def decode(cls, token: str) -> FeedCursor:
        """Parse an opaque cursor.

        Raises:
            ValidationFailure: If the token was not produced by ``encode``.
        """
        padding = "=" * (-len(token) % 4)
        try:
            decoded = base64.urlsafe_b64decode(token + padding).decode()
            score, created_at, post_id = decoded.split("|")
            return cls(int(score), datetime.fromisoformat(created_at), int(post_id))
        except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
            raise ValidationFailure("Invalid feed cursor") from exc

    def clause(self) -> Any:
        """Keyset predicate selecting rows strictly after this cursor in feed order."""
        return or_(
            Post.score < self.score,
            and_(Post.score == self.score, Post.created_at < self.created_at),
            and_(
                Post.score == self.score,
                Post.created_at == self.created_at,
                Post.id < self.id,
            ),
        )


def clamp_page_size(page_size: int | None) -> int:
    if page_size is None:
        page_size = settings.feed_default_page_size
    return max(1, min(page_size, settings.feed_max_page_size))


class FeedComposer:
    """Produces ordered pages of hydrated post summaries for a scope."""

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    def compose(
        self,
        scope: FeedScope,
        cursor: str | None = None,
        page_size: int | None = None,
        *,
        now: datetime | None = None,
    ) -> FeedPage:
        """Return one page of ``scope``.

        Args:
            scope: Channel, location, all or popular.
            cursor: ``next_cursor`` of the previous page, or None for the first page.
            page_size: Requested size, clamped to the configured bounds.
            now: Reference time for the popular window (defaults to current time).

        Raises:
            NotFound: If a channel/location scope references a missing entity.
            ValidationFailure: If the scope kind or cursor is invalid.
        """
        size = clamp_page_size(page_size)
        filters, clauses = self._scope_filters(scope, now)
        if cursor:
            clauses.append(FeedCursor.decode(cursor).clause())

        rows = retry_read(
            lambda: self.store.list(
                Post,
                filters,
                extra=clauses,
                order_by=FEED_ORDER,
                limit=size + 1,
            )
        )
        next_cursor = None
        if len(rows) > size:
            rows = rows[:size]
            next_cursor = FeedCursor.after(rows[-1]).encode()

        include_channel = scope.kind != SCOPE_CHANNEL
        return FeedPage(
            items=self._hydrate(rows, include_channel=include_channel),
            next_cursor=next_cursor,
        )

    def _scope_filters(
        self,
        scope: FeedScope,
        now: datetime | None,
    ) -> tuple[dict[str, Any], list[Any]]:
        filters: dict[str, Any] = {"is_active": True}
        clauses: list[Any] = []
        if scope.kind == SCOPE_CHANNEL:
            self.store.get_active(Channel, scope.id, "Channel")
            filters["channel_id"] = scope.id
        elif scope.kind == SCOPE_LOCATION:
            self.store.get_active(Location, scope.id, "Location")
            filters["location_id"] = scope.id
        elif scope.kind == SCOPE_POPULAR:
            if settings.popular_window_days > 0:
                clauses.append(Post.created_at >= days_ago(settings.popular_window_days, now=now))
        elif scope.kind != SCOPE_ALL:
            raise ValidationFailure(f"Unknown feed scope: {scope.kind}")
        return filters, clauses

    def _hydrate(self, posts: list[Post], *, include_channel: bool) -> list[PostSummary]:
        """Attach author and channel summaries; read-only."""
        if not posts:
            return []
        author_ids = {post.author_id for post in posts}
        authors = {
            profile.id: AuthorSummary.model_validate(profile)
            for profile in self.store.list(UserProfile, extra=[UserProfile.id.in_(author_ids)])
        }
        channels: dict[int, ChannelSummary] = {}
        if include_channel:
            channel_ids = {post.channel_id for post in posts}
            channels = {
                channel.id: ChannelSummary.model_validate(channel)
                for channel in self.store.list(Channel, extra=[Channel.id.in_(channel_ids)])
            }
        return [
            to_post_summary(
                post,
                authors.get(post.author_id) or AuthorSummary(id=post.author_id, username="[deleted]"),
                channels.get(post.channel_id) if include_channel else None,
            )
            for post in posts
        ]


def to_post_summary(
    post: Post,
    author: AuthorSummary,
    channel: ChannelSummary | None = None,
) -> PostSummary:
    """Convert a Post ORM instance plus its hydrated parts to a feed item."""
    data = PostResponse.model_validate(post).model_dump()
    return PostSummary.model_validate({**data, "author": author, "channel": channel})


def compose_feed(
    store: EntityStore,
    scope: FeedScope,
    cursor: str | None = None,
    page_size: int | None = None,
    *,
    now: datetime | None = None,
) -> FeedPage:
    """Module-level shortcut for ``FeedComposer(store).compose(...)``."""
    return FeedComposer(store).compose(scope, cursor, page_size, now=now)
