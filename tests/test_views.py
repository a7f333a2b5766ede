"""Tests for the derived views: stats, search, duration chart."""

import pytest

from visitledger.views import (
    average_duration,
    compute_stats,
    filter_visits,
    recent_durations,
    total_duration,
)

from conftest import make_visit


class TestStats:
    def test_average_of_nothing_is_zero(self):
        assert average_duration([]) == 0

    def test_average(self):
        assert average_duration([10, 20, 30]) == 20

    @pytest.mark.parametrize("durations,expected", [
        ([10, 11], 11),  # 10.5 rounds up
        ([10, 10, 11], 10),
        ([1, 2], 2),
    ])
    def test_average_rounds_half_up(self, durations, expected):
        assert average_duration(durations) == expected

    def test_total_duration(self):
        visits = [make_visit("a", duration=15), make_visit("b", duration=45)]
        assert total_duration(visits) == 60

    def test_compute_stats(self):
        visits = [make_visit(str(i), duration=d) for i, d in enumerate([10, 20, 30])]
        stats = compute_stats(visits)
        assert (stats.count, stats.total_duration, stats.average_duration) == (3, 60, 20)

    def test_compute_stats_empty(self):
        stats = compute_stats([])
        assert (stats.count, stats.total_duration, stats.average_duration) == (0, 0, 0)


class TestFilter:
    def test_matches_audio_guide_case_insensitively(self):
        jazz = make_visit("1", audio_guide="Jazz Wing Guide", visitor="0xA")
        other = make_visit("2", audio_guide="Sculpture Hall", visitor="0xB")
        assert filter_visits([jazz, other], "jazz") == [jazz]

    def test_matches_visitor(self):
        alice = make_visit("1", visitor="0xAliceWallet")
        bob = make_visit("2", visitor="0xBob")
        assert filter_visits([alice, bob], "alice") == [alice]

    def test_empty_term_matches_all(self):
        visits = [make_visit("1"), make_visit("2")]
        assert filter_visits(visits, "") == visits

    def test_does_not_mutate_input(self):
        visits = [make_visit("1", audio_guide="A"), make_visit("2", audio_guide="B")]
        filter_visits(visits, "a")
        assert len(visits) == 2


class TestRecentDurations:
    def test_scale_has_one_hour_floor(self):
        bars = recent_durations([make_visit("12345678", duration=30)])
        assert bars[0].label == "#1234"
        assert bars[0].ratio == pytest.approx(0.5)

    def test_scale_follows_longest_visit(self):
        visits = [make_visit("a", duration=120), make_visit("b", duration=60)]
        bars = recent_durations(visits)
        assert [b.ratio for b in bars] == pytest.approx([1.0, 0.5])

    def test_limited_to_five(self):
        visits = [make_visit(str(i)) for i in range(8)]
        assert len(recent_durations(visits)) == 5

    def test_empty(self):
        assert recent_durations([]) == []
