"""Confirmation gateway for write actions.

A write-tool request never touches a platform. It resolves its target,
stages a PendingAction and returns a pending_id. Only confirm_action, after
an atomic PENDING_CONFIRMATION -> EXECUTED transition, runs the real
handler, so an action executes at most once however many confirms race.
"""

import asyncio
import contextlib
import threading
import time
import uuid
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel

from ..exceptions import (
    ActionNotFound,
    ResolutionAmbiguous,
    ToolExecutionFailure,
    ToolValidationError,
)
from ..logging import get_logger
from ..tools.base import WriteTool
from ..tools.registry import ToolCatalogue
from ..types import (
    ActionStatus,
    EntityCandidate,
    EntityDomain,
    Intent,
    OwnedEntity,
    PendingAction,
    ResolutionStatus,
    ToolOutcome,
)
from .intents import classify_intent
from .resolver import EntityResolver

logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 300.0


class PendingActionStore:
    """The active set of pending actions.

    All mutation goes through transition(), a check-and-set under a lock.
    The critical section never awaits, so it is linearizable for coroutines
    and threads alike.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._active: dict[str, PendingAction] = {}

    def add(self, action: PendingAction) -> None:
        with self._lock:
            self._active[action.id] = action

    def get(self, pending_id: str) -> PendingAction | None:
        with self._lock:
            return self._active.get(pending_id)

    def transition(
        self,
        pending_id: str,
        user_id: str,
        to_status: ActionStatus,
        now: float,
    ) -> PendingAction:
        """Move an action out of PENDING_CONFIRMATION and the active set.

        Args:
            pending_id: Action to transition.
            user_id: Caller; must own the action.
            to_status: Terminal state to move to (EXECUTED or CANCELLED).
            now: Current epoch seconds, for the expiry check.

        Returns:
            The transitioned action.

        Raises:
            ActionNotFound: If the action is unknown, already terminal,
                expired, or owned by someone else.
        """
        if not to_status.is_terminal:
            raise ValueError(f"Cannot transition to non-terminal state {to_status.name}")
        with self._lock:
            action = self._active.get(pending_id)
            if action is None or action.user_id != user_id:
                raise ActionNotFound(pending_id)
            if action.is_expired(now):
                action.status = ActionStatus.EXPIRED
                del self._active[pending_id]
                raise ActionNotFound(pending_id)
            if action.status != ActionStatus.PENDING_CONFIRMATION:
                raise ActionNotFound(pending_id)
            action.status = to_status
            del self._active[pending_id]
            return action

    def for_user(self, user_id: str, now: float) -> list[PendingAction]:
        """Unexpired pending actions of a user, oldest first."""
        with self._lock:
            owned = [
                a for a in self._active.values()
                if a.user_id == user_id and not a.is_expired(now)
            ]
        return sorted(owned, key=lambda a: a.created_at)

    def sweep(self, now: float) -> int:
        """Drop expired actions. Returns how many were removed."""
        with self._lock:
            expired = [a for a in self._active.values() if a.is_expired(now)]
            for action in expired:
                action.status = ActionStatus.EXPIRED
                del self._active[action.id]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._active)


class ConfirmationGateway:
    """Stages write actions and executes them once confirmed.

    Args:
        store: Pending action store owned by this gateway.
        resolver: Entity resolver for write-tool targets.
        catalogue: Tool catalogue, used to find the handler on confirm.
        ttl_seconds: How long a staged action may be confirmed.
        clock: Returns epoch seconds; injectable for tests.
        classify: Reply classifier for the confirm/cancel shortcut.
    """

    def __init__(
        self,
        store: PendingActionStore,
        resolver: EntityResolver,
        catalogue: ToolCatalogue,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
        classify: Callable[[str], Intent] = classify_intent,
    ):
        self.store = store
        self.resolver = resolver
        self.platforms = resolver.platforms
        self.catalogue = catalogue
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.classify = classify

    async def request(self, user_id: str, tool: WriteTool, params: BaseModel) -> ToolOutcome:
        """Stage a write action, or reject it with candidates.

        Returns:
            ToolOutcome whose result is either
            {status: pending_confirmation, pending_id, action, description, details}
            or {status: not_found, error, suggestions}.

        Raises:
            ToolValidationError: If neither an id nor a name was given.
        """
        entity_id, name = tool.target(params)
        if not entity_id and not (name and name.strip()):
            raise ToolValidationError(tool.name, [f"provide {tool.ID_FIELD} or name"])

        label = tool.domain.label
        try:
            entity = await self._resolve_one(user_id, tool.domain, name, entity_id)
        except ResolutionAmbiguous as e:
            return self._not_found(
                f'Multiple {label}s match "{e.name}". Which one did you mean?',
                e.candidates,
            )
        if entity is None:
            needle = entity_id or name
            return self._not_found(
                f'No {label} found matching "{needle}". Here are your available {label}s:',
                await self.resolver.available(user_id, tool.domain),
            )

        params_bound = tool.bind(params, entity)
        description = tool.describe(params_bound)
        now = self.clock()
        action = PendingAction(
            id=str(uuid.uuid4()),
            user_id=user_id,
            tool_name=tool.name,
            params=params_bound,
            description=description,
            created_at=now,
            expires_at=now + self.ttl_seconds,
        )
        self.store.add(action)
        logger.info(f"Staged {tool.name} for user {user_id}: {description} ({action.id})")

        return ToolOutcome(
            result={
                "status": ActionStatus.PENDING_CONFIRMATION.value,
                "pending_id": action.id,
                "action": action.tool_name,
                "description": description,
                "details": params_bound,
                "expires_in_seconds": self.ttl_seconds,
            },
            summary=f"⏳ Pending confirmation: {description}",
        )

    async def confirm_action(self, user_id: str, pending_id: str) -> ToolOutcome:
        """Claim the action for execution, then run its handler.

        The claim happens before the handler runs. A handler failure leaves
        the action consumed and comes back as an error outcome.

        Raises:
            ActionNotFound: If the action cannot be claimed.
        """
        action = self.store.transition(pending_id, user_id, ActionStatus.EXECUTED, self.clock())
        return await self._execute(action)

    async def cancel_action(self, user_id: str, pending_id: str) -> ToolOutcome:
        """Cancel a pending action without running its handler.

        Raises:
            ActionNotFound: If the action is not pending for this user.
        """
        action = self.store.transition(pending_id, user_id, ActionStatus.CANCELLED, self.clock())
        logger.info(f"Cancelled {action.tool_name} for user {user_id} ({action.id})")
        return ToolOutcome(
            result={"cancelled": True, "pending_id": action.id, "action": action.description},
            summary=f"Cancelled: {action.description}",
        )

    def pending_for_user(self, user_id: str) -> list[PendingAction]:
        return self.store.for_user(user_id, self.clock())

    async def resolve_by_intent(self, user_id: str, text: str) -> list[tuple[PendingAction, ToolOutcome]] | None:
        """Settle all of a user's pending actions from a bare yes/no reply.

        Returns:
            (action, outcome) pairs in creation order, or None when the reply
            is not a bare confirm/cancel or nothing is pending.
        """
        intent = self.classify(text)
        if intent == Intent.NEITHER:
            return None
        pending = self.pending_for_user(user_id)
        if not pending:
            return None

        logger.info(f"Shortcut {intent.value} for {len(pending)} pending action(s) of user {user_id}")
        settled: list[tuple[PendingAction, ToolOutcome]] = []
        for action in pending:
            try:
                if intent == Intent.CONFIRM:
                    outcome = await self.confirm_action(user_id, action.id)
                else:
                    outcome = await self.cancel_action(user_id, action.id)
            except ActionNotFound:
                # settled by a concurrent request or expired meanwhile
                continue
            settled.append((action, outcome))
        return settled or None

    def sweep_expired(self, now: float | None = None) -> int:
        removed = self.store.sweep(self.clock() if now is None else now)
        if removed:
            logger.debug(f"Swept {removed} expired pending action(s)")
        return removed

    async def _resolve_one(
        self,
        user_id: str,
        domain: EntityDomain,
        name: str | None,
        entity_id: str | None,
    ) -> OwnedEntity | None:
        resolution = await self.resolver.resolve(user_id, domain, name=name, entity_id=entity_id)
        if resolution.status == ResolutionStatus.AMBIGUOUS:
            raise ResolutionAmbiguous(name or entity_id or "", resolution.candidates)
        return resolution.entity

    async def _execute(self, action: PendingAction) -> ToolOutcome:
        tool = self.catalogue.get_write_tool(action.tool_name)
        logger.info(f"Executing {action.tool_name} for user {action.user_id}: {action.description}")
        try:
            result = await tool.apply(action.user_id, action.params, self.platforms)
        except Exception as e:
            failure = ToolExecutionFailure(action.tool_name, e)
            logger.error(f"{failure} ({action.id})")
            return ToolOutcome(
                result={
                    "status": "failed",
                    "pending_id": action.id,
                    "action": action.tool_name,
                    "description": action.description,
                    "error": str(e),
                },
                summary=f"❌ Failed: {action.description}: {e}",
                is_error=True,
            )
        return ToolOutcome(
            result={
                "status": ActionStatus.EXECUTED.value,
                "pending_id": action.id,
                "action": action.tool_name,
                "description": action.description,
                "result": result,
            },
            summary=f"✅ {action.description}",
        )

    @staticmethod
    def _not_found(error: str, suggestions: list[EntityCandidate]) -> ToolOutcome:
        return ToolOutcome(
            result={
                "status": "not_found",
                "error": error,
                "suggestions": [s.to_dict() for s in suggestions],
            },
            summary=f"❌ Not found, {len(suggestions)} suggestions",
        )


class PendingActionSweeper:
    """Background task pruning expired pending actions."""

    def __init__(self, gateway: ConfirmationGateway, interval_seconds: float = 60.0):
        self.gateway = gateway
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task[Any] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if not self.running:
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            self.gateway.sweep_expired()
