import pytest

from app.schemas.scheduling import TimeWindow
from app.utils.overlap import overlaps, windows_overlap


class TestOverlaps:
    """Test the half-open interval overlap rule."""

    def test_partial_overlap(self):
        assert overlaps(540, 600, 570, 630)

    def test_containment(self):
        assert overlaps(540, 720, 600, 630)
        assert overlaps(600, 630, 540, 720)

    def test_touching_intervals_do_not_overlap(self):
        assert not overlaps(540, 600, 600, 660)
        assert not overlaps(600, 660, 540, 600)

    def test_disjoint_intervals(self):
        assert not overlaps(540, 570, 600, 630)

    @pytest.mark.parametrize(
        "a,b",
        [
            ((540, 600), (570, 630)),
            ((540, 600), (600, 660)),
            ((0, 1440), (720, 780)),
            ((600, 601), (599, 600)),
        ],
    )
    def test_symmetric(self, a, b):
        assert overlaps(*a, *b) == overlaps(*b, *a)


class TestWindowsOverlap:
    """Test overlap of TimeWindows."""

    def test_overlapping_windows(self):
        first = TimeWindow(start_time="09:00", end_time="11:00")
        second = TimeWindow(start_time="10:00", end_time="10:30")
        assert windows_overlap(first, second)
        assert windows_overlap(second, first)

    def test_adjacent_windows(self):
        first = TimeWindow(start_time="09:00", end_time="10:00")
        second = TimeWindow(start_time="10:00", end_time="11:00")
        assert not windows_overlap(first, second)

    def test_window_wrapping_midnight_extends_past_day_end(self):
        late = TimeWindow.from_start("23:00", 120)
        evening = TimeWindow(start_time="22:00", end_time="23:30")
        early = TimeWindow(start_time="00:00", end_time="00:30")

        assert late.end_minutes == 1500
        assert windows_overlap(late, evening)
        # Same-day early morning is not the following day's 00:00-01:00
        assert not windows_overlap(late, early)
