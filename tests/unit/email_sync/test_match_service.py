from datetime import UTC, datetime, timedelta

import pytest

from app.features.email_sync.domain import MatchMethod


def days_ago(days: int) -> datetime:
    return datetime.now(UTC) - timedelta(days=days)


@pytest.mark.asyncio
async def test_thread_identity_beats_po_match(match_service, thread_service, store):
    store.add_job("job-a", job_no="J-A")
    store.add_job("job-b", job_no="J-B", po_number="44517", created_at=days_ago(2))
    await thread_service.upsert_thread("T1", "M1", "Hello", "a@acme.com")
    await thread_service.link_thread_to_job("T1", "job-a")

    result = await match_service.match_to_job("T1", "Re: PO 44517", "a@acme.com")

    assert result.job_id == "job-a"
    assert result.job_no == "J-A"
    assert result.confidence == 1.0
    assert result.method == MatchMethod.THREAD


@pytest.mark.asyncio
async def test_single_po_candidate(match_service, store):
    store.add_job("job-1", job_no="J-2001", po_number="44517", created_at=days_ago(5))

    result = await match_service.match_to_job("T1", "Re: Proof for PO 44517", "x@y.com")

    assert result.job_id == "job-1"
    assert result.job_no == "J-2001"
    assert result.confidence == 0.9
    assert result.method == MatchMethod.PO_MATCH
    assert result.candidates is None


@pytest.mark.asyncio
async def test_po_found_in_body(match_service, store):
    store.add_job("job-1", po_number="777", created_at=days_ago(1))

    result = await match_service.match_to_job("T1", "Artwork", "x@y.com", body="Attached for PO 777")

    assert result.method == MatchMethod.PO_MATCH


@pytest.mark.asyncio
async def test_explicit_po_used_over_text(match_service, store):
    store.add_job("job-1", po_number="ABC-1", created_at=days_ago(1))

    result = await match_service.match_to_job(
        "T1", "PO 999", "x@y.com", explicit_po="ABC-1"
    )

    assert result.job_id == "job-1"


@pytest.mark.asyncio
async def test_jobs_outside_window_are_ignored(match_service, store):
    store.add_job("old", po_number="44517", created_at=days_ago(31))

    result = await match_service.match_to_job("T1", "PO 44517", "x@y.com")

    assert result.method == MatchMethod.NO_MATCH
    assert result.job_id is None
    assert result.confidence == 0.0


@pytest.mark.asyncio
async def test_deleted_jobs_are_ignored(match_service, store):
    store.add_job("gone", po_number="44517", created_at=days_ago(1), deleted=True)

    result = await match_service.match_to_job("T1", "PO 44517", "x@y.com")

    assert result.method == MatchMethod.NO_MATCH


@pytest.mark.asyncio
async def test_domain_disambiguates(match_service, store):
    store.add_job("job-1", job_no="J-1", po_number="500", customer_email="buy@acme.com", created_at=days_ago(3))
    store.add_job("job-2", job_no="J-2", po_number="500", customer_email="ops@other.com", created_at=days_ago(4))

    result = await match_service.match_to_job("T1", "PO 500", "Someone <someone@ACME.com>")

    assert result.job_id == "job-1"
    assert result.confidence == 0.85
    assert result.method == MatchMethod.PO_DOMAIN


@pytest.mark.asyncio
async def test_ambiguous_without_domain_lists_candidates(match_service, store):
    store.add_job("job-1", job_no="J-1", po_number="500", created_at=days_ago(3))
    store.add_job("job-2", job_no="J-2", po_number="500", created_at=days_ago(4))

    result = await match_service.match_to_job("T1", "PO 500", "not-an-email")

    assert result.method == MatchMethod.MULTIPLE_MATCHES
    assert result.job_id is None
    assert result.confidence == 0.0
    assert len(result.candidates) == 2
    assert {c.id for c in result.candidates} == {"job-1", "job-2"}
    assert all(c.customer_po_number == "500" for c in result.candidates)


@pytest.mark.asyncio
async def test_ambiguous_when_domain_matches_several(match_service, store):
    store.add_job("job-1", po_number="500", customer_email="a@acme.com", created_at=days_ago(3))
    store.add_job("job-2", po_number="500", customer_email="b@acme.com", created_at=days_ago(4))
    store.add_job("job-3", po_number="500", customer_email="c@other.com", created_at=days_ago(5))

    result = await match_service.match_to_job("T1", "PO 500", "x@acme.com")

    assert result.method == MatchMethod.MULTIPLE_MATCHES
    assert len(result.candidates) == 3


@pytest.mark.asyncio
async def test_no_po_number(match_service, store):
    store.add_job("job-1", po_number="500", created_at=days_ago(1))

    result = await match_service.match_to_job("T1", "Hello there", "x@y.com")

    assert result.method == MatchMethod.NO_MATCH
    assert result.candidates is None
