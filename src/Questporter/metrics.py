"""In-process counters and millisecond histograms for import runs.

Histograms are flattened into counters (``histo.<name>.le_<bound>``, ``.sum``
and ``.count``) so one ``get_counters()`` call reports everything a run did.
"""

from __future__ import annotations

import time
from bisect import bisect_left
from collections import defaultdict
from collections.abc import Iterator
from contextlib import contextmanager

DEFAULT_BUCKETS_MS = (1, 2, 5, 10, 20, 50, 100, 250, 500, 1000, 2000, 5000)

_counters: dict[str, int] = defaultdict(int)
_histograms: dict[str, dict[str, int]] = defaultdict(dict)
_hist_sums: dict[str, int] = defaultdict(int)
_hist_counts: dict[str, int] = defaultdict(int)


def inc_counter(name: str, value: int = 1) -> None:
    _counters[name] += int(value)


def get_counter(name: str) -> int:
    return _counters.get(name, 0)


def reset_counters() -> None:
    _counters.clear()
    _histograms.clear()
    _hist_sums.clear()
    _hist_counts.clear()


def get_counters(prefix: str | None = None) -> dict[str, int]:
    """Return a copy of all counters, optionally only those under ``prefix``."""
    out = dict(_counters)
    for name, buckets in _histograms.items():
        for label, count in buckets.items():
            out[f"histo.{name}.{label}"] = count
        out[f"histo.{name}.sum"] = _hist_sums[name]
        out[f"histo.{name}.count"] = _hist_counts[name]
    if prefix is None:
        return out
    return {k: v for k, v in out.items() if k.startswith(prefix) or k.startswith(f"histo.{prefix}")}


def observe_histogram(name: str, value: int, *, buckets: tuple[int, ...] | list[int] | None = None) -> None:
    """Record ``value`` in the first bucket whose upper bound holds it.

    Values above the last bound land in ``gt_<last>``.
    """
    bounds = tuple(buckets or DEFAULT_BUCKETS_MS)
    idx = bisect_left(bounds, value)
    label = f"le_{bounds[idx]}" if idx < len(bounds) else f"gt_{bounds[-1]}"
    h = _histograms[name]
    h[label] = h.get(label, 0) + 1
    _hist_sums[name] += int(value)
    _hist_counts[name] += 1


@contextmanager
def timed(name: str) -> Iterator[None]:
    """Observe the wall time of the block, in milliseconds, under ``name``."""
    start = time.perf_counter()
    try:
        yield
    finally:
        observe_histogram(name, int((time.perf_counter() - start) * 1000))
