"""
Tests for training statistics.
"""

from datetime import datetime, timedelta

import pytest

from kubb_trainer.models.round import Round
from kubb_trainer.models.session import PracticeSession, SessionType
from kubb_trainer.models.throw import ThrowRecord, ThrowType
from kubb_trainer.stats import (
    accuracy_trend,
    consistency_score,
    performance_zone,
    summarize_sessions,
)


def _session(rounds_hits, days_ago=0, complete=True, session_type=SessionType.STANDARD):
    """Build a session from per-round hit/miss lists."""
    rounds = []
    for n, hits in enumerate(rounds_hits, start=1):
        r = Round(round_number=n, is_complete=True)
        for i, hit in enumerate(hits, start=1):
            r.add_throw(ThrowRecord(is_hit=hit, throw_number=i))
        rounds.append(r)
    throws = [t for r in rounds for t in r.throws]
    session = PracticeSession(
        target=len(throws),
        session_type=session_type,
        rounds=rounds,
        total_batons=len(throws),
        total_kubbs=sum(t.is_hit for t in throws),
        date=datetime.now() - timedelta(days=days_ago),
        is_complete=complete,
    )
    return session


class TestHelpers:

    @pytest.mark.parametrize("accuracy,zone", [
        (0.95, "excellent"),
        (0.9, "excellent"),
        (0.75, "good"),
        (0.5, "average"),
        (0.2, "needs_work"),
    ])
    def test_performance_zone(self, accuracy, zone):
        assert performance_zone(accuracy) == zone

    def test_consistency_needs_two_sessions(self):
        assert consistency_score([0.5]) == 0.0

    def test_identical_accuracies_fully_consistent(self):
        assert consistency_score([0.5, 0.5, 0.5]) == pytest.approx(1.0)

    def test_trend_rises_with_improvement(self):
        sessions = [
            _session([[True, False, False, False]], days_ago=3),
            _session([[True, True, False, False]], days_ago=2),
            _session([[True, True, True, False]], days_ago=1),
        ]
        assert accuracy_trend(sessions) == pytest.approx(0.25)

    def test_trend_flat_for_single_session(self):
        assert accuracy_trend([_session([[True]])]) == 0.0


class TestSummarize:

    def test_empty(self):
        summary = summarize_sessions([])
        assert summary.total_sessions == 0
        assert summary.overall_accuracy == 0.0
        assert summary.performance_zones["needs_work"] == 0

    def test_ignores_incomplete_and_other_modes(self):
        sessions = [
            _session([[True] * 6]),
            _session([[False] * 6], complete=False),
            _session([[True] * 6], session_type=SessionType.AROUND_THE_PITCH),
        ]
        assert summarize_sessions(sessions).total_sessions == 1

    def test_totals_and_records(self):
        sessions = [
            _session([[True] * 6, [True, True, True, True, True, False]]),
            _session([[False, True, True, False, False, False]], days_ago=1),
        ]
        s = summarize_sessions(sessions)
        assert s.total_sessions == 2
        assert s.total_rounds == 3
        assert s.total_batons == 18
        assert s.total_kubbs == 13
        assert s.perfect_rounds == 1
        assert s.baseline_clears == 2
        assert s.most_baseline_clears == 2
        assert s.best_streak == 11
        assert s.first_throw_accuracy == pytest.approx(2 / 3)

    def test_clutch_counts_throws_after_three_or_four_hits(self):
        # Throws 4-6 are taken with 3, 3 and 4 hits already down
        s = summarize_sessions([_session([[True, True, True, False, True, True]])])
        assert s.clutch_accuracy == pytest.approx(2 / 3)

    def test_early_late_drop_off(self):
        early = [[True] * 6] * 3
        late = [[True, False] * 3]
        s = summarize_sessions([_session(early + late)])
        assert s.early_rounds_accuracy == 1.0
        assert s.late_rounds_accuracy == 0.5
        assert s.drop_off == pytest.approx(0.5)

    def test_recent_form_uses_newest_sessions(self):
        sessions = [_session([[True] * 6], days_ago=n) for n in range(5)]
        sessions += [_session([[False] * 6], days_ago=n) for n in range(5, 10)]
        s = summarize_sessions(sessions)
        assert s.recent_accuracy == 1.0
        assert s.mean_session_accuracy == 0.5
        assert s.is_improving
        assert s.accuracy_trend > 0

    def test_inkast_rounds_at_par(self):
        rounds = []
        for n, (field_kubbs, knocks) in enumerate([(5, [3, 2]), (3, [1, 0, 1, 1])], start=1):
            r = Round(round_number=n, field_kubbs=field_kubbs, is_complete=True)
            for i, k in enumerate(knocks, start=1):
                r.add_throw(ThrowRecord(
                    is_hit=k > 0, throw_type=ThrowType.MULTI_KUBB,
                    kubbs_hit=k, throw_number=i,
                ))
            rounds.append(r)
        session = PracticeSession(
            target=2, session_type=SessionType.INKAST_BLAST, rounds=rounds,
            total_batons=6, total_kubbs=8, is_complete=True,
        )
        s = summarize_sessions([session], SessionType.INKAST_BLAST)
        assert s.par_rounds == 2
        assert s.rounds_at_par == 1
        assert s.par_rate == 0.5

    def test_perfect_around_the_pitch_game(self):
        perfect = _session([[True] * 11], session_type=SessionType.AROUND_THE_PITCH)
        slower = _session([[True] * 5 + [False] + [True] * 6],
                          session_type=SessionType.AROUND_THE_PITCH)
        s = summarize_sessions([perfect, slower], SessionType.AROUND_THE_PITCH)
        assert s.perfect_games == 1

    def test_inkast_zones_use_hit_rate(self):
        r = Round(round_number=1, field_kubbs=10, is_complete=True)
        for i, k in enumerate([4, 3, 0, 3], start=1):
            r.add_throw(ThrowRecord(
                is_hit=k > 0, throw_type=ThrowType.MULTI_KUBB,
                kubbs_hit=k, throw_number=i,
            ))
        session = PracticeSession(
            target=1, session_type=SessionType.INKAST_BLAST, rounds=[r],
            total_batons=4, total_kubbs=10, is_complete=True,
        )
        assert session.accuracy == 2.5
        s = summarize_sessions([session], SessionType.INKAST_BLAST)
        assert s.overall_accuracy == 0.75
        assert s.best_session_accuracy == 0.75
        assert s.performance_zones["good"] == 1
        assert s.performance_zones["excellent"] == 0
