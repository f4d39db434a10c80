"""Platform collaborators.

All platform clients implement the PlatformClient interface; the agent
reaches them through a PlatformRegistry keyed by entity domain.
"""

from .base import BudgetChange, PlatformClient, PlatformRegistry
from .memory import InMemoryPlatform

__all__ = [
    "BudgetChange",
    "InMemoryPlatform",
    "PlatformClient",
    "PlatformRegistry",
]
