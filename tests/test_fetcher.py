import logging

import pytest

from conftest import ETHER, FakeLogQuery, transfer
from weth_scanner.ports import BlockRange
from weth_scanner.services.fetcher import FetchStatus, RetryingFetcher

RANGE = BlockRange(1000, 1200)


def skip_messages(caplog):
    return [r for r in caplog.records if r.name == "fetcher" and r.levelno == logging.ERROR]


@pytest.mark.asyncio
@pytest.mark.parametrize("failures", [0, 1, 2])
async def test_succeeds_when_failures_below_budget(failures, caplog):
    query = FakeLogQuery(events={1000: [transfer(1001, 7 * ETHER)]}, failures={1000: failures})
    fetcher = RetryingFetcher(query, max_attempts=3)

    with caplog.at_level(logging.WARNING, logger="fetcher"):
        outcome = await fetcher.fetch(RANGE)

    assert outcome.status is FetchStatus.OK
    assert outcome.attempts == failures + 1
    assert [e.amount for e in outcome.events] == [7 * ETHER]
    assert outcome.skipped is None
    assert query.calls[RANGE] == failures + 1
    assert skip_messages(caplog) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("failures", [3, 4, 10])
async def test_skips_when_budget_exhausted(failures, caplog):
    query = FakeLogQuery(events={1000: [transfer(1001, 7 * ETHER)]}, failures={1000: failures})
    fetcher = RetryingFetcher(query, max_attempts=3)

    with caplog.at_level(logging.WARNING, logger="fetcher"):
        outcome = await fetcher.fetch(RANGE)

    assert outcome.status is FetchStatus.SKIPPED
    assert outcome.events == []
    assert outcome.attempts == 3
    assert query.calls[RANGE] == 3
    assert "429" in outcome.error

    skipped = outcome.skipped
    assert skipped.block_range == RANGE
    assert skipped.attempts == 3

    errors = skip_messages(caplog)
    assert len(errors) == 1
    assert str(RANGE) in errors[0].getMessage()


@pytest.mark.asyncio
async def test_warns_with_remaining_attempts(caplog):
    query = FakeLogQuery(failures={1000: 2})
    fetcher = RetryingFetcher(query, max_attempts=3)

    with caplog.at_level(logging.WARNING, logger="fetcher"):
        await fetcher.fetch(RANGE)

    warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 2
    assert "2 attempts remaining" in warnings[0]
    assert "1 attempts remaining" in warnings[1]


@pytest.mark.asyncio
async def test_single_attempt_budget():
    query = FakeLogQuery(failures={1000: 1})
    outcome = await RetryingFetcher(query, max_attempts=1).fetch(RANGE)
    assert outcome.status is FetchStatus.SKIPPED
    assert query.calls[RANGE] == 1


@pytest.mark.asyncio
async def test_backoff_sleeps_between_attempts(monkeypatch):
    delays = []

    async def fake_sleep(d):
        delays.append(d)

    monkeypatch.setattr("weth_scanner.services.fetcher.asyncio.sleep", fake_sleep)
    query = FakeLogQuery(failures={1000: 5})
    await RetryingFetcher(query, max_attempts=3, base_delay=0.5).fetch(RANGE)

    # the fake query yields with sleep(0) on every call
    assert [d for d in delays if d] == [0.5, 1.0]


@pytest.mark.asyncio
async def test_unexpected_errors_propagate():
    class Broken:
        async def query(self, block_range):
            raise RuntimeError("bug")

    with pytest.raises(RuntimeError):
        await RetryingFetcher(Broken(), max_attempts=3).fetch(RANGE)
