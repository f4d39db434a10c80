"""Base class for platform collaborators.

A platform client wraps one advertising or checkout API. The agent only
talks to platforms through this interface; every call is remote, fallible,
and never retried by the agent.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from ..exceptions import PlatformError
from ..types import EntityDomain, OwnedEntity


@dataclass(frozen=True)
class BudgetChange:
    """A daily budget change, absolute or relative.

    Exactly one of the fields is set.
    """
    daily_budget: float | None = None
    increase_percent: float | None = None
    decrease_percent: float | None = None

    def apply(self, current: float) -> float:
        """Return the new daily budget given the current one."""
        if self.daily_budget is not None:
            return round(self.daily_budget, 2)
        if self.increase_percent is not None:
            return round(current * (1 + self.increase_percent / 100), 2)
        if self.decrease_percent is not None:
            return round(current * (1 - self.decrease_percent / 100), 2)
        return current

    def describe(self) -> str:
        if self.increase_percent is not None:
            return f"increase budget by {self.increase_percent:g}%"
        if self.decrease_percent is not None:
            return f"decrease budget by {self.decrease_percent:g}%"
        return f"set daily budget to ${self.daily_budget:,.2f}"


class PlatformClient(ABC):
    """Abstract base class for platform API clients.

    Each client declares the entity domains it owns and implements the
    listing and write operations the agent's tools need.
    """

    name: str = ""
    domains: tuple[EntityDomain, ...] = ()

    @abstractmethod
    async def list_entities(self, user_id: str, domain: EntityDomain) -> list[OwnedEntity]:
        """List the entities of a domain the user owns."""

    @abstractmethod
    async def pause(self, user_id: str, domain: EntityDomain, entity_id: str) -> dict[str, Any]:
        """Pause an entity (ad set, campaign, ad group or subscription)."""

    @abstractmethod
    async def enable(self, user_id: str, domain: EntityDomain, entity_id: str) -> dict[str, Any]:
        """Re-enable a paused entity."""

    @abstractmethod
    async def adjust_budget(
        self,
        user_id: str,
        domain: EntityDomain,
        entity_id: str,
        change: BudgetChange,
    ) -> dict[str, Any]:
        """Change an entity's daily budget."""

    @abstractmethod
    async def cancel_subscription(self, user_id: str, entity_id: str, reason: str) -> dict[str, Any]:
        """Cancel a subscription permanently."""


class PlatformRegistry:
    """Maps each entity domain to the platform client that owns it."""

    def __init__(self, clients: list[PlatformClient] | None = None):
        self._by_domain: dict[EntityDomain, PlatformClient] = {}
        for client in clients or []:
            self.register(client)

    def register(self, client: PlatformClient) -> None:
        for domain in client.domains:
            self._by_domain[domain] = client

    def for_domain(self, domain: EntityDomain) -> PlatformClient:
        """Get the client for a domain.

        Raises:
            PlatformError: If no client owns the domain.
        """
        client = self._by_domain.get(domain)
        if client is None:
            raise PlatformError(domain.platform, f"no client configured for {domain.label}s")
        return client

    @property
    def domains(self) -> list[EntityDomain]:
        return list(self._by_domain)
