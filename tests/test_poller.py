# File: tests/test_poller.py
"""Tick pipeline and scheduling tests, driven by a scripted fetcher."""
from __future__ import annotations

import asyncio
import time

import pytest

from linkz.crawler.fetcher import FetchError
from linkz.poller import Poller, PollerState

from conftest import FakeFetcher, anchors, lines

#: fetch latency longer than the tick interval, so ticks pile up
SLOW_FETCH: float = 0.05
FAST_INTERVAL: float = 0.01


@pytest.mark.asyncio()
async def test_second_tick_reports_only_new_links(make_poller, out_stream, err_stream):
    fetcher = FakeFetcher([anchors("/a", "/b"), anchors("/a", "/c")])
    poller = make_poller(fetcher)

    first = await poller.tick(1)
    second = await poller.tick(2)

    assert first.new_links == ["http://example.com/a", "http://example.com/b"]
    assert second.new_links == ["http://example.com/c"]
    assert lines(out_stream) == [
        "http://example.com/a",
        "http://example.com/b",
        "http://example.com/c",
    ]
    assert poller.state.seen.snapshot() == lines(out_stream)
    assert err_stream.getvalue() == ""


@pytest.mark.asyncio()
async def test_identical_document_yields_empty_second_diff(make_poller, out_stream):
    fetcher = FakeFetcher([anchors("/x", "/y")])
    poller = make_poller(fetcher)

    await poller.tick(1)
    again = await poller.tick(2)

    assert again.ok
    assert again.links == ["http://example.com/x", "http://example.com/y"]
    assert again.new_links == []
    assert lines(out_stream) == ["http://example.com/x", "http://example.com/y"]


@pytest.mark.asyncio()
async def test_fetch_error_reports_once_and_leaves_store_untouched(make_poller, out_stream, err_stream):
    fetcher = FakeFetcher([anchors("/a"), FetchError("http://example.com", "connection refused")])
    poller = make_poller(fetcher)
    await poller.tick(1)
    before = poller.state.seen.snapshot()
    out_before = out_stream.getvalue()

    outcome = await poller.tick(2)

    assert not outcome.ok
    assert isinstance(outcome.error, FetchError)
    assert out_stream.getvalue() == out_before
    assert lines(err_stream) == ["Error: http://example.com: connection refused"]
    assert poller.state.seen.snapshot() == before


@pytest.mark.asyncio()
async def test_bad_href_is_reported_and_others_survive(make_poller, out_stream, err_stream):
    poller = make_poller(FakeFetcher([anchors("/ok", "http://[::1", "/fine")]))

    outcome = await poller.tick(1)

    assert outcome.new_links == ["http://example.com/fine", "http://example.com/ok"]
    assert len(lines(err_stream)) == 1
    assert lines(err_stream)[0].startswith("Error: cannot resolve 'http://[::1'")


@pytest.mark.asyncio()
async def test_fetcher_receives_target_url(make_poller):
    fetcher = FakeFetcher([anchors()])
    poller = make_poller(fetcher, target="https://example.org/news")
    await poller.tick()
    assert fetcher.urls == ["https://example.org/news"]


@pytest.mark.asyncio()
async def test_run_stops_after_max_ticks(make_poller, out_stream):
    fetcher = FakeFetcher([anchors("/1"), anchors("/1", "/2"), anchors("/2", "/3")])
    poller = make_poller(fetcher)

    await asyncio.wait_for(poller.run(max_ticks=3), timeout=2)

    assert fetcher.calls == 3
    assert poller.ticks == 3
    assert lines(out_stream) == [
        "http://example.com/1",
        "http://example.com/2",
        "http://example.com/3",
    ]


@pytest.mark.asyncio()
async def test_first_tick_fires_immediately(make_poller):
    fetcher = FakeFetcher([anchors("/a")])
    poller = make_poller(fetcher, interval=30)
    start = time.perf_counter()
    await asyncio.wait_for(poller.run(max_ticks=1), timeout=2)
    assert time.perf_counter() - start < 1
    assert fetcher.calls == 1


@pytest.mark.asyncio()
async def test_slow_fetches_are_serialized_and_bounded(make_poller, out_stream):
    observed: list[int] = []
    fetcher = FakeFetcher(
        [anchors(*(f"/p{i}" for i in range(n + 1))) for n in range(6)],
        delay=SLOW_FETCH,
        on_fetch=lambda: observed.append(poller.in_flight),
    )
    poller = make_poller(fetcher, interval=FAST_INTERVAL, max_in_flight=2)

    await asyncio.wait_for(poller.run(max_ticks=6), timeout=5)

    assert fetcher.calls == 6
    assert fetcher.max_active == 1
    assert max(observed) == 2
    out = lines(out_stream)
    assert len(out) == len(set(out)) == 6
    assert poller.state.seen.snapshot() == out


@pytest.mark.asyncio()
async def test_concurrent_ticks_never_report_twice(make_poller, out_stream):
    fetcher = FakeFetcher([anchors("/same", "/other")], delay=SLOW_FETCH)
    poller = make_poller(fetcher, interval=FAST_INTERVAL, max_in_flight=4)

    await asyncio.gather(poller.tick(1), poller.tick(2), poller.tick(3))

    assert lines(out_stream) == ["http://example.com/other", "http://example.com/same"]
    assert fetcher.max_active == 1


@pytest.mark.asyncio()
async def test_errors_do_not_stop_the_schedule(make_poller, out_stream, err_stream):
    fetcher = FakeFetcher(
        [
            FetchError("http://example.com", "HTTP 503"),
            RuntimeError("parser exploded"),
            anchors("/back"),
        ]
    )
    poller = make_poller(fetcher)

    await asyncio.wait_for(poller.run(max_ticks=3), timeout=2)

    assert lines(out_stream) == ["http://example.com/back"]
    assert lines(err_stream) == [
        "Error: http://example.com: HTTP 503",
        "Error: parser exploded",
    ]
    assert poller.reporter.errors == 2


@pytest.mark.asyncio()
async def test_cancel_stops_forever_loop(make_poller):
    fetcher = FakeFetcher([anchors("/a")])
    poller = make_poller(fetcher, interval=FAST_INTERVAL)

    task = asyncio.create_task(poller.run())
    await asyncio.sleep(FAST_INTERVAL * 5)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert fetcher.calls >= 1
    assert poller.state.seen.snapshot() == ["http://example.com/a"]


def test_poller_rejects_non_positive_interval(reporter):
    with pytest.raises(ValueError):
        Poller(PollerState("http://example.com"), FakeFetcher([""]), reporter, interval=0)
    with pytest.raises(ValueError):
        Poller(PollerState("http://example.com"), FakeFetcher([""]), reporter, interval=1, max_in_flight=0)


def test_from_config(basic_config, reporter):
    poller = Poller.from_config(basic_config, FakeFetcher([""]), reporter)
    assert poller.state.target_url == "http://example.com"
    assert poller.interval == 1
    assert poller.max_in_flight == basic_config.max_in_flight
    assert poller.exclusions == ("javascript:void(0)", "mailto:")
