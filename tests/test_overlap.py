"""Half-open interval overlap rule."""

from datetime import datetime

import pytest

from booking import intervals_overlap, validate_interval
from errors import InvalidInterval

EXIST_START = datetime(2026, 1, 15, 10, 0)
EXIST_END = datetime(2026, 1, 15, 11, 0)


def at(hour, minute=0):
    return datetime(2026, 1, 15, hour, minute)


@pytest.mark.parametrize(
    "start, end, expected",
    [
        (at(9), at(10), False),            # ends where existing starts
        (at(11), at(12), False),           # starts where existing ends
        (at(8), at(9, 59), False),         # entirely before
        (at(11, 1), at(12), False),        # entirely after
        (at(10, 30), at(11, 30), True),    # overlaps the tail
        (at(9, 30), at(10, 30), True),     # overlaps the head
        (at(10, 15), at(10, 45), True),    # contained
        (at(9), at(12), True),             # engulfs
        (at(10), at(11), True),            # identical
        (at(10), at(10, 1), True),         # same start, shorter
    ],
)
def test_overlap_against_existing(start, end, expected):
    assert intervals_overlap(start, end, EXIST_START, EXIST_END) is expected


def test_overlap_is_symmetric():
    assert intervals_overlap(EXIST_START, EXIST_END, at(10, 30), at(11, 30))
    assert not intervals_overlap(EXIST_START, EXIST_END, at(11), at(12))


def test_validate_interval_accepts_ordered_local_times():
    validate_interval(at(10), at(11))


@pytest.mark.parametrize("start, end", [(at(11), at(10)), (at(10), at(10))])
def test_validate_interval_rejects_empty_or_reversed(start, end):
    with pytest.raises(InvalidInterval):
        validate_interval(start, end)


def test_validate_interval_rejects_utc_offsets():
    aware = datetime.fromisoformat("2026-01-15T10:00:00+01:00")
    with pytest.raises(InvalidInterval):
        validate_interval(aware, datetime.fromisoformat("2026-01-15T11:00:00+01:00"))
