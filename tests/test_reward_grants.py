"""Tests for code redemption and evaluation rewards."""

import logging
from datetime import UTC, datetime

import pytest
from sqlalchemy.exc import InterfaceError

from monstervault.models.failure import (
    AlreadyClaimedError,
    ExpiredError,
    NotFoundError,
    TransientError,
)
from monstervault.models.monster import InboxReason

HELLOWORLD_EXPIRY = datetime(2025, 11, 5, tzinfo=UTC)
BEFORE_EXPIRY = datetime(2025, 11, 1, 12, 0, tzinfo=UTC)
AFTER_EXPIRY = datetime(2025, 11, 6, tzinfo=UTC)


@pytest.fixture
async def helloworld(registry):
    claim_code, _ = await registry.create("HELLOWORLD", "ice-rare", HELLOWORLD_EXPIRY)
    return claim_code


class TestGrantFromCode:
    async def test_redeem_deposits_snapshot_and_records_claim(
        self, rewards, ledger, registry, make_player, helloworld
    ) -> None:
        await make_player("P1")

        monster = await rewards.grant_from_code("P1", "helloworld", BEFORE_EXPIRY)
        player = await ledger.get_player("P1")
        claim_code = await registry.lookup("HELLOWORLD")

        assert monster.template_id == "ice-rare"
        assert monster.reason == InboxReason.CODE
        assert (monster.attack, monster.defense, monster.hp) == (48, 78, 96)
        assert [m.instance_id for m in player.inbox] == [monster.instance_id]
        assert player.inbox[0].reason == InboxReason.CODE
        assert claim_code.claimed_by == frozenset({"P1"})

    async def test_second_redeem_is_refused(
        self, rewards, ledger, make_player, helloworld
    ) -> None:
        await make_player("P1")
        await rewards.grant_from_code("P1", "HELLOWORLD", BEFORE_EXPIRY)

        with pytest.raises(AlreadyClaimedError):
            await rewards.grant_from_code("P1", "HELLOWORLD", BEFORE_EXPIRY)

        assert len((await ledger.get_player("P1")).inbox) == 1

    async def test_expired_code(self, rewards, ledger, make_player, helloworld) -> None:
        await make_player("P2")

        with pytest.raises(ExpiredError):
            await rewards.grant_from_code("P2", "HELLOWORLD", AFTER_EXPIRY)

        assert (await ledger.get_player("P2")).inbox == []

    async def test_each_player_redeems_once(
        self, rewards, registry, make_player, helloworld
    ) -> None:
        await make_player("P1")
        await make_player("P2")

        first = await rewards.grant_from_code("P1", "HELLOWORLD", BEFORE_EXPIRY)
        second = await rewards.grant_from_code("P2", "HELLOWORLD", BEFORE_EXPIRY)

        assert first.instance_id != second.instance_id
        assert (await registry.lookup("HELLOWORLD")).claimed_by == frozenset({"P1", "P2"})

    async def test_unknown_code(self, rewards, make_player) -> None:
        await make_player("P1")

        with pytest.raises(NotFoundError) as exc_info:
            await rewards.grant_from_code("P1", "NOPE", BEFORE_EXPIRY)

        assert exc_info.value.entity == "code"

    async def test_unknown_template(self, rewards, registry, ledger, make_player) -> None:
        await make_player("P1")
        await registry.create("BROKEN", "dragon-legendary", HELLOWORLD_EXPIRY)

        with pytest.raises(NotFoundError) as exc_info:
            await rewards.grant_from_code("P1", "BROKEN", BEFORE_EXPIRY)

        assert exc_info.value.entity == "monster template"
        assert (await ledger.get_player("P1")).inbox == []
        assert (await registry.lookup("BROKEN")).claimed_by == frozenset()

    async def test_missing_player_claims_nothing(self, rewards, registry, helloworld) -> None:
        with pytest.raises(NotFoundError):
            await rewards.grant_from_code("ghost", "HELLOWORLD", BEFORE_EXPIRY)

        assert (await registry.lookup("HELLOWORLD")).claimed_by == frozenset()

    async def test_commit_failure_keeps_monster(
        self, rewards, registry, ledger, make_player, helloworld, monkeypatch, caplog
    ) -> None:
        """A failed claim record is logged; the deposited monster stays put."""
        await make_player("P1")

        async def failing_mark_claimed(*args, **kwargs):
            raise TransientError("mark_claimed", 5)

        monkeypatch.setattr(registry, "mark_claimed", failing_mark_claimed)

        with caplog.at_level(logging.WARNING, logger="monstervault.services.reward_grants"):
            monster = await rewards.grant_from_code("P1", "HELLOWORLD", BEFORE_EXPIRY)

        assert (await ledger.get_player("P1")).has_pending(monster.instance_id)
        assert (await registry.lookup("HELLOWORLD")).claimed_by == frozenset()
        assert "CODE_CLAIM_COMMIT_FAILED" in caplog.text

    async def test_store_error_on_commit_keeps_monster(
        self, rewards, registry, ledger, make_player, helloworld, monkeypatch, caplog
    ) -> None:
        """A raw store error while recording the claim is not surfaced either."""
        await make_player("P1")

        async def dropped_connection(*args, **kwargs):
            raise InterfaceError("INSERT", {}, Exception("connection closed"))

        monkeypatch.setattr(registry, "mark_claimed", dropped_connection)

        with caplog.at_level(logging.WARNING, logger="monstervault.services.reward_grants"):
            monster = await rewards.grant_from_code("P1", "HELLOWORLD", BEFORE_EXPIRY)

        player = await ledger.get_player("P1")
        assert [m.instance_id for m in player.inbox] == [monster.instance_id]
        assert "CODE_CLAIM_COMMIT_FAILED" in caplog.text
        assert "kind=InterfaceError" in caplog.text


class TestGrantForEvaluations:
    async def test_one_monster_per_new_evaluation(self, rewards, ledger, make_player) -> None:
        await make_player("P1")

        granted = await rewards.grant_for_evaluations("P1", ["e1", "e2", 3])
        player = await ledger.get_player("P1")

        assert len(granted) == 3
        assert all(m.reason == InboxReason.EVAL for m in granted)
        assert [m.instance_id for m in player.inbox] == [m.instance_id for m in granted]
        assert player.granted_evaluations == {"e1", "e2", "3"}

    async def test_replay_grants_nothing(self, rewards, ledger, make_player) -> None:
        await make_player("P1")
        await rewards.grant_for_evaluations("P1", ["e1", "e2"])

        replay = await rewards.grant_for_evaluations("P1", ["e2", "e1"])
        partial = await rewards.grant_for_evaluations("P1", ["e2", "e3"])

        assert replay == []
        assert len(partial) == 1
        assert len((await ledger.get_player("P1")).inbox) == 3

    async def test_duplicate_ids_in_one_request(self, rewards, make_player) -> None:
        await make_player("P1")

        granted = await rewards.grant_for_evaluations("P1", ["e1", "e1", "e1"])

        assert len(granted) == 1

    async def test_missing_player(self, rewards) -> None:
        with pytest.raises(NotFoundError):
            await rewards.grant_for_evaluations("ghost", ["e1"])
