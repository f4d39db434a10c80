"""Entity resolution for write tools.

Maps a free-text name (or a possibly partial id) to one of the entities a
user owns. Ambiguity is never settled by guessing: several matches always
produce ranked candidates.
"""

import difflib

from ..logging import get_logger
from ..platforms.base import PlatformRegistry
from ..types import (
    EntityCandidate,
    EntityDomain,
    OwnedEntity,
    Resolution,
    ResolutionStatus,
)

logger = get_logger(__name__)

# candidates offered for an ambiguous partial match
MAX_CANDIDATES = 5
FUZZY_CUTOFF = 0.75


def rank_candidates(entities: list[OwnedEntity], limit: int | None = None) -> list[EntityCandidate]:
    """Order entities by descending ranking metric and number them from 1.

    Ties keep the listing order, so the ranking is deterministic.
    """
    ranked = sorted(entities, key=lambda e: e.metric, reverse=True)
    if limit is not None:
        ranked = ranked[:limit]
    return [
        EntityCandidate(option=i + 1, id=e.id, name=e.name, metric=e.metric)
        for i, e in enumerate(ranked)
    ]


class EntityResolver:
    """Resolves names and ids to owned entities through the platform clients.

    Matching order:
    1. exact id
    2. case-insensitive exact name
    3. case-insensitive substring (name, or id when an id was given)
    4. fuzzy name similarity

    The first step that matches anything decides the outcome: one hit
    resolves, several hits are ambiguous.
    """

    def __init__(self, platforms: PlatformRegistry):
        self.platforms = platforms

    async def owned(self, user_id: str, domain: EntityDomain) -> list[OwnedEntity]:
        """List the user's entities in a domain, deduplicated by id."""
        client = self.platforms.for_domain(domain)
        entities = await client.list_entities(user_id, domain)
        unique: dict[str, OwnedEntity] = {}
        for entity in entities:
            unique.setdefault(entity.id, entity)
        return list(unique.values())

    async def available(self, user_id: str, domain: EntityDomain, limit: int = 10) -> list[EntityCandidate]:
        """Rank all of the user's entities in a domain, for 'did you mean' listings."""
        return rank_candidates(await self.owned(user_id, domain), limit=limit)

    async def resolve(
        self,
        user_id: str,
        domain: EntityDomain,
        name: str | None = None,
        entity_id: str | None = None,
    ) -> Resolution:
        """Resolve a name or id to exactly one owned entity.

        Args:
            user_id: Owner whose entities are searched.
            domain: Entity domain to search.
            name: Free-text name as the user said it.
            entity_id: Entity id, exact or partial.

        Returns:
            Resolution: RESOLVED with the entity, AMBIGUOUS with ranked
            candidates, or NO_MATCH with no candidates.
        """
        entities = await self.owned(user_id, domain)

        if entity_id:
            needle = str(entity_id).strip()
            exact = [e for e in entities if e.id == needle]
            if exact:
                return Resolution(ResolutionStatus.RESOLVED, entity=exact[0])
            partial = [
                e for e in entities
                if needle in e.id or needle.lower() in e.name.lower()
            ]
            if partial:
                decided = self._decide(partial, limit=MAX_CANDIDATES)
                # a wrong id alongside a usable name falls back to the name
                if decided.is_resolved or not name:
                    return decided
            elif not name:
                return Resolution(ResolutionStatus.NO_MATCH)

        needle = (name or "").strip().lower()
        if not needle:
            return Resolution(ResolutionStatus.NO_MATCH)

        exact_name = [e for e in entities if e.name.lower() == needle]
        if exact_name:
            return self._decide(exact_name)

        contains = [e for e in entities if needle in e.name.lower()]
        if contains:
            return self._decide(contains, limit=MAX_CANDIDATES)

        fuzzy = [
            e for e in entities
            if difflib.SequenceMatcher(None, needle, e.name.lower()).ratio() >= FUZZY_CUTOFF
        ]
        if fuzzy:
            return self._decide(fuzzy, limit=MAX_CANDIDATES)

        logger.debug(f"no {domain.value} matching '{name}' for user {user_id}")
        return Resolution(ResolutionStatus.NO_MATCH)

    def _decide(self, matches: list[OwnedEntity], limit: int | None = None) -> Resolution:
        if len(matches) == 1:
            return Resolution(ResolutionStatus.RESOLVED, entity=matches[0])
        return Resolution(
            ResolutionStatus.AMBIGUOUS,
            candidates=rank_candidates(matches, limit=limit),
        )
