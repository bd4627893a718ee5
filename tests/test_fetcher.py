"""Tests for concurrent busy-period fetching."""

import asyncio
from datetime import datetime, timezone

import pytest

from mutualavail.domain.errors import CalendarSyncFailed, NetworkTimeout
from mutualavail.domain.models import PartyAvailabilityProfile, TimeInterval
from mutualavail.providers.base import BusyPeriodProvider
from mutualavail.providers.fetcher import BusyPeriodFetcher
from mutualavail.providers.memory import StaticBusyPeriodProvider

START = datetime(2024, 1, 15, tzinfo=timezone.utc)
END = datetime(2024, 1, 22, tzinfo=timezone.utc)


def busy(day: int, start_hour: int, end_hour: int) -> TimeInterval:
    return TimeInterval(
        datetime(2024, 1, day, start_hour, tzinfo=timezone.utc),
        datetime(2024, 1, day, end_hour, tzinfo=timezone.utc),
    )


class RendezvousProvider(BusyPeriodProvider):
    """Only answers once both parties are being fetched at the same time."""

    def __init__(self):
        self.started = set()
        self.both_started = asyncio.Event()

    async def fetch(self, party_id, start, end):
        self.started.add(party_id)
        if len(self.started) == 2:
            self.both_started.set()
        await self.both_started.wait()
        return []


class HangingProvider(BusyPeriodProvider):
    """Never answers; counts how many calls were cancelled."""

    def __init__(self):
        self.active = 0
        self.cancelled = 0

    async def fetch(self, party_id, start, end):
        self.active += 1
        try:
            await asyncio.sleep(30)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        return []


class FailFirstPartyProvider(HangingProvider):
    """Fails party "a" as soon as the other party's call is hanging."""

    def __init__(self):
        super().__init__()
        self.hanging = asyncio.Event()

    async def fetch(self, party_id, start, end):
        if party_id == "a":
            await self.hanging.wait()
            raise CalendarSyncFailed("token expired")
        self.hanging.set()
        return await super().fetch(party_id, start, end)


class TestBusyPeriodFetcher:
    """Tests for BusyPeriodFetcher."""

    @pytest.fixture
    def profile_a(self):
        return PartyAvailabilityProfile(party_id="a")

    @pytest.fixture
    def profile_b(self):
        return PartyAvailabilityProfile(party_id="b")

    @pytest.mark.asyncio
    async def test_fetches_both_parties(self, profile_a, profile_b):
        provider = StaticBusyPeriodProvider({"a": [busy(15, 9, 10)], "b": [busy(16, 9, 10)]})
        fetcher = BusyPeriodFetcher([provider])

        snapshot_a, snapshot_b = await fetcher.fetch_pair(profile_a, profile_b, START, END)

        assert snapshot_a.intervals == (busy(15, 9, 10),)
        assert snapshot_b.intervals == (busy(16, 9, 10),)
        assert not snapshot_a.degraded

    @pytest.mark.asyncio
    async def test_parties_fetched_concurrently(self, profile_a, profile_b):
        provider = RendezvousProvider()
        fetcher = BusyPeriodFetcher([provider], timeout_seconds=1.0)

        snapshot_a, snapshot_b = await fetcher.fetch_pair(profile_a, profile_b, START, END)

        assert snapshot_a.has_calendar_data
        assert snapshot_b.has_calendar_data

    @pytest.mark.asyncio
    async def test_intervals_from_all_providers(self, profile_a):
        first = StaticBusyPeriodProvider({"a": [busy(15, 9, 10)]}, name="work")
        second = StaticBusyPeriodProvider({"a": [busy(15, 18, 19)]}, name="personal")
        fetcher = BusyPeriodFetcher([first, second])

        snapshot = await fetcher.fetch(profile_a, START, END)

        assert set(snapshot.intervals) == {busy(15, 9, 10), busy(15, 18, 19)}

    @pytest.mark.asyncio
    async def test_timeout_degrades(self, profile_a):
        provider = StaticBusyPeriodProvider({"a": [busy(15, 9, 10)]}, delay_seconds=1.0)
        fetcher = BusyPeriodFetcher([provider], timeout_seconds=0.05)

        snapshot = await fetcher.fetch(profile_a, START, END)

        assert snapshot.degraded
        assert not snapshot.has_calendar_data
        assert "did not respond" in snapshot.reason

    @pytest.mark.asyncio
    async def test_timeout_raises_when_calendar_required(self, profile_a):
        provider = StaticBusyPeriodProvider(delay_seconds=1.0)
        fetcher = BusyPeriodFetcher([provider], timeout_seconds=0.05)

        with pytest.raises(CalendarSyncFailed) as exc_info:
            await fetcher.fetch(profile_a, START, END, require_calendar_data=True)
        assert "did not respond" in exc_info.value.reason

    @pytest.mark.asyncio
    async def test_provider_error_degrades(self, profile_a, profile_b):
        provider = StaticBusyPeriodProvider(
            {"b": [busy(15, 9, 10)]},
            failures={"a": NetworkTimeout()},
        )
        fetcher = BusyPeriodFetcher([provider])

        snapshot_a, snapshot_b = await fetcher.fetch_pair(profile_a, profile_b, START, END)

        assert snapshot_a.degraded
        assert snapshot_b.intervals == (busy(15, 9, 10),)

    @pytest.mark.asyncio
    async def test_one_failing_provider_degrades_party(self, profile_a):
        good = StaticBusyPeriodProvider({"a": [busy(15, 9, 10)]})
        bad = StaticBusyPeriodProvider(failures={"a": CalendarSyncFailed("token expired")})
        fetcher = BusyPeriodFetcher([good, bad])

        snapshot = await fetcher.fetch(profile_a, START, END)

        assert snapshot.degraded
        assert snapshot.intervals is None
        assert "token expired" in snapshot.reason

    @pytest.mark.asyncio
    async def test_unexpected_error_propagates(self, profile_a, profile_b):
        provider = StaticBusyPeriodProvider(failures={"a": RuntimeError("boom")})
        fetcher = BusyPeriodFetcher([provider])

        with pytest.raises(RuntimeError):
            await fetcher.fetch_pair(profile_a, profile_b, START, END)

    @pytest.mark.asyncio
    async def test_calendar_disabled_skips_providers(self):
        provider = StaticBusyPeriodProvider({"a": [busy(15, 9, 10)]})
        fetcher = BusyPeriodFetcher([provider])
        profile = PartyAvailabilityProfile(party_id="a", use_calendar_busy_periods=False)

        snapshot = await fetcher.fetch(profile, START, END)

        assert not snapshot.has_calendar_data
        assert not snapshot.degraded
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_second_party_skipped(self, profile_a, profile_b):
        provider = StaticBusyPeriodProvider()
        fetcher = BusyPeriodFetcher([provider])

        _, snapshot_b = await fetcher.fetch_pair(
            profile_a, profile_b, START, END, include_b=False
        )

        assert not snapshot_b.has_calendar_data
        assert [call[0] for call in provider.calls] == ["a"]

    @pytest.mark.asyncio
    async def test_no_providers(self, profile_a):
        snapshot = await BusyPeriodFetcher().fetch(profile_a, START, END)
        assert snapshot.intervals is None
        assert not snapshot.degraded

    @pytest.mark.asyncio
    async def test_cancellation_reaches_providers(self, profile_a, profile_b):
        provider = HangingProvider()
        fetcher = BusyPeriodFetcher([provider], timeout_seconds=60.0)

        task = asyncio.create_task(fetcher.fetch_pair(profile_a, profile_b, START, END))
        while provider.active < 2:
            await asyncio.sleep(0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert provider.cancelled == 2

    @pytest.mark.asyncio
    async def test_required_failure_cancels_other_party(self, profile_a, profile_b):
        provider = FailFirstPartyProvider()
        fetcher = BusyPeriodFetcher([provider], timeout_seconds=5.0)

        loop = asyncio.get_running_loop()
        started = loop.time()
        with pytest.raises(CalendarSyncFailed) as exc_info:
            await fetcher.fetch_pair(
                profile_a, profile_b, START, END, require_calendar_data=True
            )

        assert loop.time() - started < 0.5
        assert exc_info.value.reason == "token expired"
        assert provider.active == 1
        assert provider.cancelled == 1

    @pytest.mark.asyncio
    async def test_required_failure_cancels_other_providers(self, profile_a):
        failing = StaticBusyPeriodProvider(
            failures={"a": NetworkTimeout()}, delay_seconds=0.05, name="work"
        )
        hanging = HangingProvider()
        fetcher = BusyPeriodFetcher([failing, hanging], timeout_seconds=5.0)

        with pytest.raises(CalendarSyncFailed):
            await fetcher.fetch(profile_a, START, END, require_calendar_data=True)

        assert hanging.cancelled == 1
