from __future__ import annotations

import sys
import threading

import pytest

from pixquant.utils import (
    captured_output,
    colour_usage_report,
    error,
    log,
    min_distance_to_palette,
    pick_colour,
    warn,
)

from conftest import row_of


def test_captured_output_routes_log_helpers(capsys):
    before = sys.stdout
    with captured_output() as (out, err):
        log("hello")
        warn("careful")
        error("broken")
    assert sys.stdout is before
    assert out.getvalue() == "hello\n[warn] careful\n"
    assert err.getvalue() == "[error] broken\n"
    log("after")
    assert capsys.readouterr().out == "after\n"


def test_captured_output_is_per_thread():
    results = {}
    barrier = threading.Barrier(4)

    def worker(n: int) -> None:
        with captured_output() as (out, _err):
            barrier.wait()
            for i in range(20):
                log(f"{n}:{i}")
        results[n] = out.getvalue().splitlines()

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    for n in range(4):
        assert results[n] == [f"{n}:{i}" for i in range(20)]


def test_colour_usage_report_counts_visible_pixels():
    buf = row_of([(255, 0, 0), (255, 0, 0), (0, 0, 255), (0, 255, 0, 0)])
    assert colour_usage_report(buf) == [("#ff0000", 2), ("#0000ff", 1)]


def test_min_distance_to_palette():
    assert min_distance_to_palette((0, 0, 0), [(3, 4, 0), (100, 100, 100)]) == 5.0
    assert min_distance_to_palette((0, 0, 0), []) == float("inf")


def test_pick_colour_bounds():
    buf = row_of([(1, 2, 3), (4, 5, 6)])
    assert pick_colour(buf, 1, 0) == (4, 5, 6)
    with pytest.raises(IndexError):
        pick_colour(buf, 2, 0)
