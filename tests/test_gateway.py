"""Tests for the confirmation gateway and pending action store."""

import asyncio

import pytest

from operator_agent.core.gateway import PendingActionStore, PendingActionSweeper
from operator_agent.exceptions import ActionNotFound, ToolValidationError
from operator_agent.types import ActionStatus, EntityDomain, Intent, PendingAction

from conftest import OTHER_USER, USER


def _action(pending_id="p1", user_id=USER, created_at=0.0, ttl=300.0) -> PendingAction:
    return PendingAction(
        id=pending_id,
        user_id=user_id,
        tool_name="pause_meta_adset",
        params={"adset_id": "42", "name": "Spring Launch"},
        description='Pause Meta adset 42 "Spring Launch"',
        created_at=created_at,
        expires_at=created_at + ttl,
    )


async def _request(gateway, catalogue, tool_name, arguments, user_id=USER):
    tool = catalogue.get(tool_name)
    return await gateway.request(user_id, tool, tool.validate(arguments))


class TestPendingActionStore:
    """Tests for the check-and-set primitive."""

    def test_transition_removes_from_active_set(self):
        store = PendingActionStore()
        store.add(_action())
        action = store.transition("p1", USER, ActionStatus.EXECUTED, now=10)
        assert action.status == ActionStatus.EXECUTED
        assert store.get("p1") is None
        assert len(store) == 0

    def test_second_transition_fails(self):
        store = PendingActionStore()
        store.add(_action())
        store.transition("p1", USER, ActionStatus.EXECUTED, now=10)
        with pytest.raises(ActionNotFound):
            store.transition("p1", USER, ActionStatus.EXECUTED, now=10)

    def test_foreign_user(self):
        store = PendingActionStore()
        store.add(_action())
        with pytest.raises(ActionNotFound):
            store.transition("p1", OTHER_USER, ActionStatus.CANCELLED, now=10)
        # still pending for its owner
        assert store.get("p1").status == ActionStatus.PENDING_CONFIRMATION

    def test_expired(self):
        store = PendingActionStore()
        action = _action(ttl=300)
        store.add(action)
        with pytest.raises(ActionNotFound):
            store.transition("p1", USER, ActionStatus.EXECUTED, now=360)
        assert action.status == ActionStatus.EXPIRED
        assert len(store) == 0

    def test_non_terminal_target_rejected(self):
        store = PendingActionStore()
        store.add(_action())
        with pytest.raises(ValueError):
            store.transition("p1", USER, ActionStatus.PENDING_CONFIRMATION, now=0)

    def test_for_user_oldest_first(self):
        store = PendingActionStore()
        store.add(_action("late", created_at=20))
        store.add(_action("early", created_at=10))
        store.add(_action("theirs", user_id=OTHER_USER))
        assert [a.id for a in store.for_user(USER, now=30)] == ["early", "late"]

    def test_sweep(self):
        store = PendingActionStore()
        store.add(_action("old", created_at=0, ttl=5))
        store.add(_action("fresh", created_at=0, ttl=500))
        assert store.sweep(now=10) == 1
        assert store.get("old") is None
        assert store.get("fresh") is not None


class TestRequest:
    """Tests for staging write actions."""

    async def test_scenario_a_single_match(self, gateway, catalogue, meta):
        """Pause by unique name stages one action; confirm runs the handler once."""
        # rename 57 so only 42 is called Spring Launch
        meta.add_entity(USER, EntityDomain.META_ADSET, "57", "Autumn Launch", metric=200)

        outcome = await _request(gateway, catalogue, "pause_meta_adset", {"name": "Spring Launch"})

        result = outcome.result
        assert result["status"] == "pending_confirmation"
        assert "Spring Launch" in result["description"]
        assert result["details"]["adset_id"] == "42"
        assert outcome.summary.startswith("⏳ Pending confirmation")
        assert not outcome.is_error
        assert meta.calls == []

        confirmed = await gateway.confirm_action(USER, result["pending_id"])
        assert confirmed.result["status"] == "executed"
        assert confirmed.summary == f"✅ {result['description']}"
        assert meta.calls == [("pause", USER, "42")]
        assert meta.status_of(USER, EntityDomain.META_ADSET, "42") == "PAUSED"

    async def test_scenario_b_ambiguous_then_pick(self, gateway, catalogue, meta):
        outcome = await _request(gateway, catalogue, "pause_meta_adset", {"name": "Spring Launch"})

        assert outcome.result["status"] == "not_found"
        assert "Which one did you mean?" in outcome.result["error"]
        assert outcome.result["suggestions"] == [
            {"option": 1, "id": "42", "name": "Spring Launch", "metric": 500},
            {"option": 2, "id": "57", "name": "Spring Launch", "metric": 200},
        ]
        assert len(gateway.store) == 0

        # the user picks option 1; the oracle retries with its id
        retry = await _request(
            gateway, catalogue, "pause_meta_adset", {"adset_id": 42, "name": "Spring Launch"}
        )
        assert retry.result["status"] == "pending_confirmation"
        assert retry.result["details"]["adset_id"] == "42"

        await gateway.confirm_action(USER, retry.result["pending_id"])
        assert meta.calls == [("pause", USER, "42")]

    async def test_no_match_lists_available(self, gateway, catalogue):
        outcome = await _request(gateway, catalogue, "pause_meta_adset", {"name": "Black Friday"})
        assert outcome.result["status"] == "not_found"
        assert 'No Meta adset found matching "Black Friday"' in outcome.result["error"]
        assert [s["id"] for s in outcome.result["suggestions"]] == ["42", "63", "57"]
        assert len(gateway.store) == 0

    async def test_requires_id_or_name(self, gateway, catalogue):
        with pytest.raises(ToolValidationError, match="adset_id or name"):
            await _request(gateway, catalogue, "pause_meta_adset", {})

    async def test_budget_description(self, gateway, catalogue):
        outcome = await _request(
            gateway, catalogue, "adjust_meta_budget", {"adset_id": "63", "increase_percent": 20}
        )
        assert outcome.result["description"] == 'Increase Meta adset 63 "Retargeting Q2" budget by 20%'

    async def test_expires_in(self, gateway, catalogue):
        outcome = await _request(gateway, catalogue, "pause_meta_adset", {"adset_id": "63"})
        assert outcome.result["expires_in_seconds"] == 300


class TestConfirm:
    """Tests for confirming and cancelling."""

    async def test_scenario_c_expired(self, gateway, catalogue, meta, clock):
        """Confirming six minutes after staging fails without side effects."""
        outcome = await _request(gateway, catalogue, "pause_meta_adset", {"adset_id": "63"})
        clock.advance(6 * 60)

        with pytest.raises(ActionNotFound):
            await gateway.confirm_action(USER, outcome.result["pending_id"])
        assert meta.calls == []

    async def test_concurrent_confirms_execute_once(self, gateway, catalogue, meta):
        outcome = await _request(gateway, catalogue, "pause_meta_adset", {"adset_id": "63"})
        pending_id = outcome.result["pending_id"]

        results = await asyncio.gather(
            *(gateway.confirm_action(USER, pending_id) for _ in range(5)),
            return_exceptions=True,
        )

        executed = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, ActionNotFound)]
        assert len(executed) == 1
        assert len(rejected) == 4
        assert meta.calls_for("pause") == [("pause", USER, "63")]

    async def test_foreign_user_cannot_confirm(self, gateway, catalogue, meta):
        outcome = await _request(gateway, catalogue, "pause_meta_adset", {"adset_id": "63"})
        with pytest.raises(ActionNotFound):
            await gateway.confirm_action(OTHER_USER, outcome.result["pending_id"])
        assert meta.calls == []
        assert len(gateway.pending_for_user(USER)) == 1

    async def test_cancel(self, gateway, catalogue, meta):
        outcome = await _request(gateway, catalogue, "pause_meta_adset", {"adset_id": "63"})
        pending_id = outcome.result["pending_id"]

        cancelled = await gateway.cancel_action(USER, pending_id)
        assert cancelled.result == {
            "cancelled": True,
            "pending_id": pending_id,
            "action": 'Pause Meta adset 63 "Retargeting Q2"',
        }
        with pytest.raises(ActionNotFound):
            await gateway.confirm_action(USER, pending_id)
        assert meta.calls == []

    async def test_scenario_e_handler_failure_consumes_action(self, gateway, catalogue, meta):
        meta.failing.add("pause")
        outcome = await _request(gateway, catalogue, "pause_meta_adset", {"adset_id": "63"})
        pending_id = outcome.result["pending_id"]

        failed = await gateway.confirm_action(USER, pending_id)
        assert failed.is_error
        assert failed.result["status"] == "failed"
        assert failed.summary.startswith("❌ Failed: Pause Meta adset 63")

        # consumed: never offered again
        assert gateway.pending_for_user(USER) == []
        with pytest.raises(ActionNotFound):
            await gateway.confirm_action(USER, pending_id)
        assert len(meta.calls_for("pause")) == 1

    async def test_subscription_cancel_default_reason(self, gateway, catalogue, checkout):
        outcome = await _request(gateway, catalogue, "cancel_cc_subscription", {"name": "jane@example.com"})
        confirmed = await gateway.confirm_action(USER, outcome.result["pending_id"])
        assert confirmed.result["result"]["reason"] == "Cancelled via operator"
        assert checkout.status_of(USER, EntityDomain.SUBSCRIPTION, "sub_881") == "CANCELLED"


class TestResolveByIntent:
    """Tests for the bare confirm/cancel shortcut."""

    async def test_confirm_all_pending(self, gateway, catalogue, meta):
        await _request(gateway, catalogue, "pause_meta_adset", {"adset_id": "63"})
        await _request(gateway, catalogue, "pause_meta_campaign", {"campaign_id": "9001"})

        settled = await gateway.resolve_by_intent(USER, "yes")

        assert [a.tool_name for a, _ in settled] == ["pause_meta_adset", "pause_meta_campaign"]
        assert all(o.result["status"] == "executed" for _, o in settled)
        assert meta.calls == [("pause", USER, "63"), ("pause", USER, "9001")]

    async def test_cancel_all_pending(self, gateway, catalogue, meta):
        await _request(gateway, catalogue, "pause_meta_adset", {"adset_id": "63"})

        settled = await gateway.resolve_by_intent(USER, "nevermind")

        assert len(settled) == 1
        assert settled[0][1].result["cancelled"] is True
        assert meta.calls == []

    async def test_nothing_pending(self, gateway):
        assert await gateway.resolve_by_intent(USER, "yes") is None

    async def test_not_a_bare_reply(self, gateway, catalogue):
        await _request(gateway, catalogue, "pause_meta_adset", {"adset_id": "63"})
        assert await gateway.resolve_by_intent(USER, "yes but only the tiktok one") is None
        assert len(gateway.pending_for_user(USER)) == 1

    async def test_only_own_actions(self, gateway, catalogue):
        await _request(gateway, catalogue, "pause_meta_adset", {"adset_id": "63"})
        assert await gateway.resolve_by_intent(OTHER_USER, "confirm") is None

    async def test_custom_classifier(self, platforms, catalogue, clock):
        from operator_agent.core.gateway import ConfirmationGateway
        from operator_agent.core.resolver import EntityResolver

        gateway = ConfirmationGateway(
            PendingActionStore(),
            EntityResolver(platforms),
            catalogue,
            clock=clock,
            classify=lambda text: Intent.CONFIRM if text == "ship it" else Intent.NEITHER,
        )
        await _request(gateway, catalogue, "pause_meta_adset", {"adset_id": "63"})
        assert await gateway.resolve_by_intent(USER, "yes") is None
        assert len(await gateway.resolve_by_intent(USER, "ship it")) == 1


class TestSweeper:
    """Tests for expiry sweeping."""

    async def test_sweep_expired(self, gateway, catalogue, clock):
        await _request(gateway, catalogue, "pause_meta_adset", {"adset_id": "63"})
        clock.advance(301)
        assert gateway.sweep_expired() == 1
        assert len(gateway.store) == 0

    async def test_background_sweeper(self, gateway, catalogue, clock):
        await _request(gateway, catalogue, "pause_meta_adset", {"adset_id": "63"})
        clock.advance(301)

        sweeper = PendingActionSweeper(gateway, interval_seconds=0.01)
        sweeper.start()
        assert sweeper.running
        for _ in range(100):
            if len(gateway.store) == 0:
                break
            await asyncio.sleep(0.01)
        await sweeper.stop()

        assert len(gateway.store) == 0
        assert not sweeper.running
