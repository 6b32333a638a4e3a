"""Slug generation and scoped uniqueness checks for locations and channels."""
from __future__ import annotations

import re

from townsquare.core.errors import DuplicateSlug, InvalidName
from townsquare.models import Channel, Location
from townsquare.services.store import EntityStore

_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_DASHES = re.compile(r"-+")


def slugify(name: str) -> str:
    """Return the URL slug for ``name``.

    Lowercases, drops everything outside ``[a-z0-9\\s-]``, turns whitespace
    runs into ``-``, collapses repeated ``-`` and trims ``-`` from both ends.

    >>> slugify("Ann Arbor")
    'ann-arbor'
    >>> slugify("Politics!!")
    'politics'
    """
    slug = _DISALLOWED.sub("", name.lower())
    slug = _WHITESPACE.sub("-", slug.strip())
    slug = _DASHES.sub("-", slug)
    return slug.strip("-")


class SlugResolver:
    """Derives slugs and rejects collisions within a scope.

    Locations share one global scope; channels are scoped to their parent
    location. The lookup here is only a fast path: the unique indexes on
    ``location.slug`` and ``channel(location_id, slug)`` are authoritative and
    their violations are reported as ``DuplicateSlug`` by the create paths.
    """

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    def resolve(
        self,
        name: str,
        scope: int | None = None,
        *,
        exclude_id: int | None = None,
    ) -> str:
        """Return a free slug for ``name`` in ``scope``.

        Args:
            name: Human-readable name.
            scope: Parent location id for channels; None for locations.
            exclude_id: Entity being renamed, ignored by the collision check.

        Raises:
            InvalidName: If the name yields an empty slug.
            DuplicateSlug: If the slug is taken in the scope.
        """
        slug = slugify(name)
        if not slug:
            raise InvalidName()
        if self._taken(slug, scope, exclude_id):
            raise DuplicateSlug()
        return slug

    def _taken(self, slug: str, scope: int | None, exclude_id: int | None) -> bool:
        if scope is None:
            rows = self.store.list(Location, {"slug": slug}, limit=2)
        else:
            rows = self.store.list(Channel, {"location_id": scope, "slug": slug}, limit=2)
        return any(row.id != exclude_id for row in rows)
