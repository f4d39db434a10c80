"""In-memory platform client.

Holds entities per user and domain in process memory. Used by the CLI for
local runs (seeded from config.yaml) and by the test suite; it records every
write call so callers can assert on side effects.
"""

from dataclasses import dataclass
from typing import Any

from ..exceptions import PlatformError
from ..logging import get_logger
from ..types import EntityDomain, OwnedEntity
from .base import BudgetChange, PlatformClient

logger = get_logger(__name__)


@dataclass
class _EntityRecord:
    id: str
    name: str
    metric: float
    status: str = "ACTIVE"
    daily_budget: float | None = None


class InMemoryPlatform(PlatformClient):
    """Platform client backed by dictionaries.

    Attributes:
        calls: Write calls in order, as (operation, user_id, entity_id) tuples
        failing: Operation names that raise PlatformError when called
    """

    def __init__(self, name: str, domains: tuple[EntityDomain, ...]):
        self.name = name
        self.domains = domains
        self._entities: dict[tuple[str, EntityDomain], dict[str, _EntityRecord]] = {}
        self.calls: list[tuple[str, str, str]] = []
        self.failing: set[str] = set()

    @classmethod
    def from_mapping(cls, name: str, data: dict[str, Any]) -> "InMemoryPlatform":
        """Build a platform from a nested mapping.

        Expected shape (as loaded from YAML)::

            {"domains": {"meta_adset": {"user-1": [{"id": "42", "name": "...", "metric": 500}]}}}
        """
        domains_data = data.get("domains", {})
        platform = cls(name, tuple(EntityDomain(d) for d in domains_data))
        for domain_name, users in domains_data.items():
            domain = EntityDomain(domain_name)
            for user_id, entities in (users or {}).items():
                for entity in entities or []:
                    platform.add_entity(
                        str(user_id),
                        domain,
                        str(entity["id"]),
                        entity["name"],
                        metric=float(entity.get("metric", 0)),
                        daily_budget=entity.get("daily_budget"),
                    )
        return platform

    def add_entity(
        self,
        user_id: str,
        domain: EntityDomain,
        entity_id: str,
        name: str,
        metric: float = 0.0,
        daily_budget: float | None = None,
    ) -> None:
        if domain not in self.domains:
            self.domains = self.domains + (domain,)
        bucket = self._entities.setdefault((user_id, domain), {})
        bucket[entity_id] = _EntityRecord(
            id=entity_id, name=name, metric=metric, daily_budget=daily_budget
        )

    def status_of(self, user_id: str, domain: EntityDomain, entity_id: str) -> str:
        return self._get(user_id, domain, entity_id).status

    def budget_of(self, user_id: str, domain: EntityDomain, entity_id: str) -> float | None:
        return self._get(user_id, domain, entity_id).daily_budget

    def calls_for(self, operation: str) -> list[tuple[str, str, str]]:
        return [c for c in self.calls if c[0] == operation]

    async def list_entities(self, user_id: str, domain: EntityDomain) -> list[OwnedEntity]:
        bucket = self._entities.get((user_id, domain), {})
        return [OwnedEntity(id=r.id, name=r.name, metric=r.metric) for r in bucket.values()]

    async def pause(self, user_id: str, domain: EntityDomain, entity_id: str) -> dict[str, Any]:
        record = self._write("pause", user_id, domain, entity_id)
        record.status = "PAUSED"
        return {"id": entity_id, "status": record.status}

    async def enable(self, user_id: str, domain: EntityDomain, entity_id: str) -> dict[str, Any]:
        record = self._write("enable", user_id, domain, entity_id)
        record.status = "ACTIVE"
        return {"id": entity_id, "status": record.status}

    async def adjust_budget(
        self,
        user_id: str,
        domain: EntityDomain,
        entity_id: str,
        change: BudgetChange,
    ) -> dict[str, Any]:
        record = self._write("adjust_budget", user_id, domain, entity_id)
        previous = record.daily_budget or 0.0
        record.daily_budget = change.apply(previous)
        return {"id": entity_id, "previous_budget": previous, "daily_budget": record.daily_budget}

    async def cancel_subscription(self, user_id: str, entity_id: str, reason: str) -> dict[str, Any]:
        record = self._write("cancel_subscription", user_id, EntityDomain.SUBSCRIPTION, entity_id)
        record.status = "CANCELLED"
        return {"id": entity_id, "status": record.status, "reason": reason}

    def _get(self, user_id: str, domain: EntityDomain, entity_id: str) -> _EntityRecord:
        record = self._entities.get((user_id, domain), {}).get(entity_id)
        if record is None:
            raise PlatformError(self.name, f"{domain.label} {entity_id} not found")
        return record

    def _write(self, operation: str, user_id: str, domain: EntityDomain, entity_id: str) -> _EntityRecord:
        self.calls.append((operation, user_id, entity_id))
        logger.debug(f"{self.name}: {operation} {domain.value} {entity_id} for {user_id}")
        if operation in self.failing:
            raise PlatformError(self.name, f"{operation} failed for {entity_id}")
        return self._get(user_id, domain, entity_id)
