"""Core agent components.

This module provides the pieces the conversation manager drives per turn:
- EntityResolver: Maps names to owned entities or ranked candidates
- ConfirmationGateway: Stages write actions and executes confirmed ones
- ToolDispatcher: Validates and runs tool calls against the catalogue
- ReasoningLoop: Drives the oracle through tool-call round trips
- MemoryExtractor: Distills long-term facts in the background
- PromptBuilder: Constructs the system context
"""

from .dispatcher import ToolDispatcher
from .gateway import ConfirmationGateway, PendingActionStore, PendingActionSweeper
from .intents import classify_intent
from .loop import ReasoningLoop
from .memory_extractor import MemoryExtractor
from .prompt_builder import PromptBuilder
from .resolver import EntityResolver

__all__ = [
    "ConfirmationGateway",
    "EntityResolver",
    "MemoryExtractor",
    "PendingActionStore",
    "PendingActionSweeper",
    "PromptBuilder",
    "ReasoningLoop",
    "ToolDispatcher",
    "classify_intent",
]
