"""
Training statistics for Kubb Trainer.

Aggregates completed practice sessions into the numbers shown on the
history screen and by `kubb-trainer --stats`:

  - Totals: sessions, rounds, batons, kubbs, overall accuracy
  - Records: best session accuracy, longest streak, perfect rounds,
    baseline clears, king hits, perfect Around-the-Pitch games,
    Inkast Blast rounds cleared at or under par
  - Pressure: first-throw accuracy, clutch accuracy (throws taken with
    3-4 hits already in the round), early vs late round drop-off
  - Form: consistency score, performance zones, recent form, and the
    accuracy trend (least-squares slope per session)

Sessions are expected newest first, as Database.get_all_sessions()
returns them.
"""

import logging
from dataclasses import dataclass, field

import numpy as np
from scipy.stats import linregress

from kubb_trainer.models.board import BoardState
from kubb_trainer.models.session import PracticeSession, SessionType
from kubb_trainer.utils.constants import (
    CLUTCH_HITS_MAX,
    CLUTCH_HITS_MIN,
    EARLY_ROUND_LIMIT,
    PERFECT_GAME_TARGET,
    PERFORMANCE_ZONES,
    RECENT_FORM_SESSIONS,
)

logger = logging.getLogger(__name__)


@dataclass
class SessionSummary:
    """Aggregate statistics over a set of completed sessions."""
    session_type: SessionType = SessionType.STANDARD
    total_sessions: int = 0
    total_rounds: int = 0
    total_batons: int = 0
    total_kubbs: int = 0
    overall_accuracy: float = 0.0
    mean_session_accuracy: float = 0.0
    best_session_accuracy: float = 0.0
    best_streak: int = 0
    baseline_clears: int = 0
    most_baseline_clears: int = 0
    perfect_rounds: int = 0
    king_hits: int = 0
    king_attempts: int = 0
    par_rounds: int = 0
    rounds_at_par: int = 0
    perfect_games: int = 0
    first_throw_accuracy: float = 0.0
    clutch_accuracy: float = 0.0
    avg_kubbs_per_round: float = 0.0
    consistency_score: float = 0.0
    early_rounds_accuracy: float = 0.0
    late_rounds_accuracy: float = 0.0
    drop_off: float = 0.0
    performance_zones: dict[str, int] = field(default_factory=dict)
    recent_accuracy: float = 0.0
    accuracy_trend: float = 0.0

    @property
    def is_improving(self) -> bool:
        return self.recent_accuracy > self.mean_session_accuracy

    @property
    def king_accuracy(self) -> float:
        if self.king_attempts == 0:
            return 0.0
        return self.king_hits / self.king_attempts

    @property
    def par_rate(self) -> float:
        if self.par_rounds == 0:
            return 0.0
        return self.rounds_at_par / self.par_rounds


def _ratio(hits: int, attempts: int) -> float:
    return hits / attempts if attempts > 0 else 0.0


def performance_zone(accuracy: float) -> str:
    """Name the zone a session accuracy falls into."""
    for name, threshold in PERFORMANCE_ZONES.items():
        if accuracy >= threshold:
            return name
    return "needs_work"


def consistency_score(accuracies) -> float:
    """1 / (1 + variance) of session accuracies. 0 for fewer than 2."""
    values = np.asarray(accuracies, dtype=float)
    if values.size < 2:
        return 0.0
    return float(1.0 / (1.0 + np.var(values)))


def accuracy_trend(sessions: list[PracticeSession]) -> float:
    """Change in session hit rate per session, oldest to newest."""
    if len(sessions) < 2:
        return 0.0
    ordered = sorted(sessions, key=lambda s: s.date)
    x = np.arange(len(ordered), dtype=float)
    y = np.array([s.hit_rate for s in ordered], dtype=float)
    if np.all(y == y[0]):
        return 0.0
    return float(linregress(x, y).slope)


def summarize_sessions(sessions: list[PracticeSession],
                       session_type: SessionType = SessionType.STANDARD) -> SessionSummary:
    """Compute statistics over the completed sessions of one type."""
    completed = [
        s for s in sessions
        if s.is_complete and s.session_type == session_type
    ]
    summary = SessionSummary(
        session_type=session_type,
        performance_zones={name: 0 for name in (*PERFORMANCE_ZONES, "needs_work")},
    )
    if not completed:
        return summary

    # Hit rates stay within [0, 1] even with multi-kubb throws
    accuracies = np.array([s.hit_rate for s in completed], dtype=float)

    first_throws = first_hits = 0
    clutch_throws = clutch_hits = 0
    early_throws = early_hits = 0
    late_throws = late_hits = 0
    kubbs_in_rounds = 0

    for session in completed:
        rounds = session.completed_rounds
        summary.total_rounds += len(rounds)
        summary.best_streak = max(summary.best_streak, session.best_streak)
        summary.baseline_clears += session.total_baseline_clears
        summary.most_baseline_clears = max(
            summary.most_baseline_clears, session.total_baseline_clears
        )
        summary.king_hits += session.total_king_hits
        summary.king_attempts += session.total_king_throws
        summary.performance_zones[performance_zone(session.hit_rate)] += 1
        if (session.session_type == SessionType.AROUND_THE_PITCH
                and BoardState.replay(session.all_throws).is_cleared
                and session.total_batons <= PERFECT_GAME_TARGET):
            summary.perfect_games += 1

        for index, round_ in enumerate(rounds, start=1):
            kubbs_in_rounds += round_.kubbs_knocked_down
            if round_.is_perfect:
                summary.perfect_rounds += 1
            if round_.par is not None:
                summary.par_rounds += 1
                summary.rounds_at_par += int(round_.is_at_or_under_par)

            if round_.throws:
                first_throws += 1
                first_hits += int(round_.throws[0].is_hit)

            hits_so_far = 0
            for record in round_.throws:
                if CLUTCH_HITS_MIN <= hits_so_far <= CLUTCH_HITS_MAX:
                    clutch_throws += 1
                    clutch_hits += int(record.is_hit)
                if record.is_hit:
                    hits_so_far += 1

            if index <= EARLY_ROUND_LIMIT:
                early_throws += round_.total_throws
                early_hits += round_.hits
            else:
                late_throws += round_.total_throws
                late_hits += round_.hits

    summary.total_sessions = len(completed)
    summary.total_batons = sum(s.total_batons for s in completed)
    summary.total_kubbs = sum(s.total_kubbs for s in completed)
    total_hits = sum(1 for s in completed for t in s.all_throws if t.is_hit)
    summary.overall_accuracy = _ratio(total_hits, summary.total_batons)
    summary.mean_session_accuracy = float(accuracies.mean())
    summary.best_session_accuracy = float(accuracies.max())
    summary.first_throw_accuracy = _ratio(first_hits, first_throws)
    summary.clutch_accuracy = _ratio(clutch_hits, clutch_throws)
    summary.avg_kubbs_per_round = _ratio(kubbs_in_rounds, summary.total_rounds)
    summary.consistency_score = consistency_score(accuracies)
    summary.early_rounds_accuracy = _ratio(early_hits, early_throws)
    summary.late_rounds_accuracy = _ratio(late_hits, late_throws)
    summary.drop_off = summary.early_rounds_accuracy - summary.late_rounds_accuracy
    summary.recent_accuracy = float(accuracies[:RECENT_FORM_SESSIONS].mean())
    summary.accuracy_trend = accuracy_trend(completed)

    logger.debug(
        f"Summarized {summary.total_sessions} {session_type.value} sessions: "
        f"accuracy={summary.overall_accuracy:.3f}, trend={summary.accuracy_trend:+.4f}"
    )
    return summary
