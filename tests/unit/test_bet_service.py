"""BetApplicationService against in-memory repositories."""

import asyncio

import pytest

from src.gb_bet.application.schemas import (
    AgreeRequest,
    CreateBetRequest,
    JoinBetRequest,
    ResolveBetRequest,
    SubmitEvidenceRequest,
)
from src.gb_bet.application.service import BetApplicationService
from src.gb_common.errors import (
    BetNotFoundError,
    ConcurrencyConflictError,
    IllegalTransitionError,
)
from src.gb_settlement.application.service import SettlementService
from tests.unit.fakes import FakeBetRepository


class InterleavingBetRepository(FakeBetRepository):
    """Yields to the loop after every read so concurrent writers overlap."""

    async def get_bet(self, db, bet_id):
        bet = await super().get_bet(db, bet_id)
        await asyncio.sleep(0)
        return bet


class BrokenNotifier:
    def notify(self, event_type, target_user_ids, payload):
        raise RuntimeError("push service down")


def _service(bet_repo, obligation_repo, notifier, **kwargs) -> BetApplicationService:
    settlement = SettlementService(
        obligation_repo=obligation_repo, bet_repo=bet_repo, notifier=notifier
    )
    return BetApplicationService(
        repo=bet_repo, settlement=settlement, notifier=notifier, **kwargs
    )


def _create_req(**kwargs) -> CreateBetRequest:
    data = dict(
        title="Derby",
        amount_cents=5000,
        sides=["Home", "Away"],
        resolution_type="neutral_party",
        neutral_party_id="judge",
        display_name="Alice",
    )
    data.update(kwargs)
    return CreateBetRequest(**data)


async def _open_neutral_bet(svc: BetApplicationService, db) -> str:
    created = await svc.create_bet(db, "alice", _create_req())
    await svc.join_bet(db, created.bet_id, "bob", JoinBetRequest(side="Away", display_name="Bob"))
    return created.bet_id


class TestCreateAndJoin:
    async def test_create_commits_and_reports_fee(self, db, bet_repo, obligation_repo, notifier):
        svc = _service(bet_repo, obligation_repo, notifier)
        resp = await svc.create_bet(db, "alice", _create_req(amount_cents=10_000))

        assert resp.bet_id.startswith("BET-")
        assert resp.status == "pending"
        assert resp.facilitation_fee_cents == 200
        assert resp.facilitation_fee_display == "$2.00"
        db.commit.assert_awaited()
        assert notifier.of_type("neutral_party_assigned")[0][1] == ["judge"]

    async def test_join_transitions_and_notifies(self, db, bet_repo, obligation_repo, notifier):
        svc = _service(bet_repo, obligation_repo, notifier)
        bet_id = await _open_neutral_bet(svc, db)

        detail = await svc.get_bet(db, bet_id)
        assert detail.status == "awaiting_resolution"
        assert detail.version == 1
        assert [p.user_id for p in detail.participants] == ["alice", "bob"]
        assert notifier.of_type("bet_joined")[0][1] == ["alice"]
        assert notifier.of_type("bet_ready_for_resolution")[0][1] == ["judge"]

    async def test_get_missing_bet(self, db, bet_repo, obligation_repo, notifier):
        svc = _service(bet_repo, obligation_repo, notifier)
        with pytest.raises(BetNotFoundError):
            await svc.get_bet(db, "BET-NOPE")

    async def test_join_missing_bet_rolls_back(self, db, bet_repo, obligation_repo, notifier):
        svc = _service(bet_repo, obligation_repo, notifier)
        with pytest.raises(BetNotFoundError):
            await svc.join_bet(db, "BET-NOPE", "bob", JoinBetRequest(side="Away", display_name="Bob"))
        db.rollback.assert_awaited()


class TestResolve:
    async def test_resolve_fans_out_once(self, db, bet_repo, obligation_repo, notifier):
        svc = _service(bet_repo, obligation_repo, notifier)
        bet_id = await _open_neutral_bet(svc, db)

        detail = await svc.resolve_bet(db, bet_id, "judge", ResolveBetRequest(winning_side="Home"))

        assert detail.status == "resolved"
        assert detail.winner == "Home"
        [ob] = obligation_repo.rows.values()
        assert (ob.from_user_id, ob.to_user_id, ob.amount_cents) == ("bob", "alice", 5000)
        [required] = notifier.of_type("payment_required")
        assert required[1] == ["bob"]
        assert required[2]["obligation_id"] == ob.id
        [resolved] = notifier.of_type("bet_resolved")
        assert resolved[1] == ["alice", "bob"]
        assert resolved[2]["winner"] == "Home"

    async def test_concurrent_resolvers_in_one_process(self, db, bet_repo, obligation_repo, notifier):
        svc = _service(bet_repo, obligation_repo, notifier)
        bet_id = await _open_neutral_bet(svc, db)

        results = await asyncio.gather(
            svc.resolve_bet(db, bet_id, "judge", ResolveBetRequest(winning_side="Home")),
            svc.resolve_bet(db, bet_id, "alice", ResolveBetRequest(winning_side="Away")),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 1
        assert isinstance(failures[0], IllegalTransitionError)
        assert len(obligation_repo.rows) == 1
        assert len(notifier.of_type("bet_resolved")) == 1

    async def test_concurrent_resolvers_across_processes(self, db, obligation_repo, notifier):
        # Two service instances share only the store: the versioned write decides.
        repo = InterleavingBetRepository()
        first = _service(repo, obligation_repo, notifier)
        second = _service(repo, obligation_repo, notifier)
        bet_id = await _open_neutral_bet(first, db)

        results = await asyncio.gather(
            first.resolve_bet(db, bet_id, "judge", ResolveBetRequest(winning_side="Home")),
            second.resolve_bet(db, bet_id, "judge", ResolveBetRequest(winning_side="Away")),
            return_exceptions=True,
        )

        winners = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(winners) == 1
        assert isinstance(failures[0], (IllegalTransitionError, ConcurrencyConflictError))
        stored = repo.bets[bet_id]
        assert stored.winner == winners[0].winner
        assert len(obligation_repo.rows) == 1
        assert len(notifier.of_type("bet_resolved")) == 1

    async def test_sink_failure_does_not_fail_resolution(self, db, bet_repo, obligation_repo, notifier):
        svc = _service(bet_repo, obligation_repo, notifier)
        bet_id = await _open_neutral_bet(svc, db)
        obligation_repo.fail_next = True

        detail = await svc.resolve_bet(db, bet_id, "judge", ResolveBetRequest(winning_side="Home"))

        assert detail.status == "resolved"
        assert obligation_repo.rows == {}
        assert notifier.of_type("payment_required") == []
        assert len(notifier.of_type("bet_resolved")) == 1

    async def test_notifier_failure_does_not_fail_resolution(self, db, bet_repo, obligation_repo):
        svc = _service(bet_repo, obligation_repo, BrokenNotifier())
        bet_id = await _open_neutral_bet(svc, db)

        detail = await svc.resolve_bet(db, bet_id, "alice", ResolveBetRequest(winning_side="Away"))

        assert detail.status == "resolved"
        assert len(obligation_repo.rows) == 1


class TestAgree:
    async def test_consensus_flow(self, db, bet_repo, obligation_repo, notifier):
        svc = _service(bet_repo, obligation_repo, notifier)
        created = await svc.create_bet(
            db, "alice", _create_req(resolution_type="everyone_agrees", neutral_party_id=None)
        )
        bet_id = created.bet_id
        await svc.join_bet(db, bet_id, "bob", JoinBetRequest(side="Away", display_name="Bob"))
        await svc.join_bet(db, bet_id, "carol", JoinBetRequest(side="Away", display_name="Carol"))

        first = await svc.agree_to_resolution(db, bet_id, "alice", AgreeRequest(winning_side="Away"))
        second = await svc.agree_to_resolution(db, bet_id, "bob", AgreeRequest())
        assert first.resolved is False
        assert second.resolved is False
        assert second.bet.agreed_count == 2
        assert obligation_repo.rows == {}

        last = await svc.agree_to_resolution(db, bet_id, "carol", AgreeRequest(winning_side="Away"))

        assert last.resolved is True
        assert last.bet.resolved_by == "consensus"
        [ob] = obligation_repo.rows.values()
        assert (ob.from_user_id, ob.to_user_id) == ("alice", "bob")

    async def test_concurrent_completing_agrees_across_processes(
        self, db, obligation_repo, notifier
    ):
        repo = InterleavingBetRepository()
        first = _service(repo, obligation_repo, notifier)
        second = _service(repo, obligation_repo, notifier)
        created = await first.create_bet(
            db, "alice", _create_req(resolution_type="everyone_agrees", neutral_party_id=None)
        )
        bet_id = created.bet_id
        await first.join_bet(db, bet_id, "bob", JoinBetRequest(side="Away", display_name="Bob"))

        results = await asyncio.gather(
            first.agree_to_resolution(db, bet_id, "alice", AgreeRequest(winning_side="Home")),
            second.agree_to_resolution(db, bet_id, "bob", AgreeRequest(winning_side="Home")),
        )

        assert sorted(r.resolved for r in results) == [False, True]
        assert repo.bets[bet_id].status == "resolved"
        [ob] = obligation_repo.rows.values()
        assert (ob.from_user_id, ob.to_user_id) == ("bob", "alice")
        assert len(notifier.of_type("bet_resolved")) == 1


class TestConcurrentJoins:
    async def test_joins_across_processes_both_land(self, db, obligation_repo, notifier):
        repo = InterleavingBetRepository()
        first = _service(repo, obligation_repo, notifier)
        second = _service(repo, obligation_repo, notifier)
        created = await first.create_bet(db, "alice", _create_req())

        # Both read the one-sided list; the Away join must still see carol on retry.
        await asyncio.gather(
            first.join_bet(
                db, created.bet_id, "carol", JoinBetRequest(side="Home", display_name="Carol")
            ),
            second.join_bet(db, created.bet_id, "bob", JoinBetRequest(side="Away", display_name="Bob")),
        )

        stored = repo.bets[created.bet_id]
        assert stored.status == "awaiting_resolution"
        assert sorted(p.user_id for p in stored.participants) == ["alice", "bob", "carol"]


class TestBetLocks:
    async def test_lock_map_empty_after_failed_commands(self, db, bet_repo, obligation_repo, notifier):
        svc = _service(bet_repo, obligation_repo, notifier)
        for i in range(50):
            with pytest.raises(BetNotFoundError):
                await svc.join_bet(
                    db, f"BET-missing-{i}", "bob", JoinBetRequest(side="Away", display_name="Bob")
                )
        assert svc._bet_locks == {}
        assert svc._lock_holders == {}

    async def test_lock_map_empty_after_contended_commands(
        self, db, bet_repo, obligation_repo, notifier
    ):
        svc = _service(bet_repo, obligation_repo, notifier)
        bet_id = await _open_neutral_bet(svc, db)

        await asyncio.gather(
            svc.resolve_bet(db, bet_id, "judge", ResolveBetRequest(winning_side="Home")),
            svc.submit_evidence(db, bet_id, "bob", SubmitEvidenceRequest(type="text", content="x")),
            return_exceptions=True,
        )

        assert svc._bet_locks == {}
        assert svc._lock_holders == {}


class TestEvidence:
    async def test_submit(self, db, bet_repo, obligation_repo, notifier):
        svc = _service(bet_repo, obligation_repo, notifier)
        bet_id = await _open_neutral_bet(svc, db)

        out = await svc.submit_evidence(
            db, bet_id, "judge", SubmitEvidenceRequest(type="text", content="Home won 2-1")
        )

        assert out.id.startswith("EVD-")
        assert out.submitted_by == "judge"
        detail = await svc.get_bet(db, bet_id)
        assert [e.id for e in detail.evidence] == [out.id]


class TestListBets:
    async def test_pagination_and_filters(self, db, bet_repo, obligation_repo, notifier):
        svc = _service(bet_repo, obligation_repo, notifier)
        for _ in range(3):
            await svc.create_bet(db, "alice", _create_req())

        page = await svc.list_bets(db, "alice", None, False, None, limit=2)
        assert len(page.items) == 2
        assert page.has_more is True
        assert page.next_cursor is not None

        assert (await svc.list_bets(db, "judge", None, True, None, limit=10)).has_more is False
        assert (await svc.list_bets(db, "judge", None, True, None, limit=10)).items
        assert (await svc.list_bets(db, "alice", "resolved", False, None, limit=10)).items == []
        assert (await svc.list_bets(db, "mallory", None, False, None, limit=10)).items == []


class TestRetryExhaustion:
    async def test_conflict_after_max_attempts(self, db, bet_repo, obligation_repo, notifier):
        svc = _service(bet_repo, obligation_repo, notifier, max_attempts=2)
        bet_id = await _open_neutral_bet(svc, db)

        async def always_stale(db_, bet, expected_version):
            return False

        bet_repo.save_bet = always_stale
        with pytest.raises(ConcurrencyConflictError) as exc_info:
            await svc.submit_evidence(
                db, bet_id, "bob", SubmitEvidenceRequest(type="text", content="x")
            )
        assert exc_info.value.http_status == 409
        assert obligation_repo.rows == {}


def test_quote_fee() -> None:
    quote = BetApplicationService.quote_fee(49_900)
    assert quote.facilitation_fee_cents == 1000
    assert quote.facilitation_fee_display == "$10.00"
