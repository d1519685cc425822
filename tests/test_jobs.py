"""Tests for the claim code bootstrap job."""

from datetime import UTC, datetime

import pytest

from monstervault.jobs import bootstrap_codes as job
from monstervault.services.claim_codes import ClaimCodeRegistry

EXPIRY = datetime(2025, 11, 5, tzinfo=UTC)


class TestParseExpiry:
    def test_date_only_is_utc_midnight(self) -> None:
        assert job.parse_expiry("2025-11-05") == EXPIRY

    def test_offset_is_kept(self) -> None:
        parsed = job.parse_expiry("2025-11-05T02:00:00+02:00")

        assert parsed == EXPIRY

    def test_garbage(self) -> None:
        with pytest.raises(ValueError):
            job.parse_expiry("next tuesday")


class TestBootstrapCodes:
    async def test_creates_default_code(self, session_factory, catalog) -> None:
        results = await job.bootstrap_codes(job.DEFAULT_CODES, session_factory, catalog)

        claim_code = await ClaimCodeRegistry(session_factory).lookup("helloworld")
        assert results == {"HELLOWORLD": True}
        assert claim_code.template_id == "ice-rare"
        assert claim_code.expires_at == EXPIRY

    async def test_rerun_keeps_claims(self, session_factory, catalog) -> None:
        registry = ClaimCodeRegistry(session_factory)
        await job.bootstrap_codes(job.DEFAULT_CODES, session_factory, catalog)
        await registry.mark_claimed("HELLOWORLD", "P1", datetime(2025, 11, 1, tzinfo=UTC))

        results = await job.bootstrap_codes(job.DEFAULT_CODES, session_factory, catalog)

        assert results == {"HELLOWORLD": False}
        assert (await registry.lookup("HELLOWORLD")).claimed_by == frozenset({"P1"})

    async def test_unknown_template_is_skipped(self, session_factory, catalog) -> None:
        codes = [("BROKEN", "dragon-legendary", EXPIRY), ("GOOD", "fire-common", EXPIRY)]

        results = await job.bootstrap_codes(codes, session_factory, catalog)

        assert results == {"GOOD": True}


class TestMain:
    @pytest.fixture
    def seeded(self, monkeypatch: pytest.MonkeyPatch) -> list:
        """Replace the store calls so main only exercises argument handling."""
        calls: list = []

        async def fake_init_db() -> None:
            calls.append("init_db")

        async def fake_bootstrap(codes, *args, **kwargs):
            calls.append(codes)
            return {}

        monkeypatch.setattr(job, "init_db", fake_init_db)
        monkeypatch.setattr(job, "bootstrap_codes", fake_bootstrap)
        return calls

    def test_defaults(self, seeded) -> None:
        job.main([])

        assert seeded == ["init_db", job.DEFAULT_CODES]

    def test_single_code(self, seeded) -> None:
        job.main(["--code", "spring", "--template", "plant-epic", "--expires", "2026-04-01"])

        assert seeded[1] == [("spring", "plant-epic", datetime(2026, 4, 1, tzinfo=UTC))]

    def test_code_requires_template_and_expiry(self, seeded) -> None:
        with pytest.raises(SystemExit):
            job.main(["--code", "spring"])

        assert seeded == []
