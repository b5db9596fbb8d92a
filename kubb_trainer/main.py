"""
Kubb Trainer entry point.

Runs a practice session in the terminal, scored from the companion
watch (or the simulated one), and browses saved sessions.

Usage:
    kubb-trainer                                # 8-Meter, auto-detect watch bridge
    kubb-trainer --watch mock --preset elite    # Simulated player
    kubb-trainer --mode around-the-pitch --target-score 15
    kubb-trainer --mode inkast-blast --target 5 --phase mid
    kubb-trainer --history                      # List saved sessions
    kubb-trainer --stats --mode standard        # Training statistics
"""

import argparse
import logging
import signal
import socket
import sys

from PyQt6.QtCore import QCoreApplication, QTimer

from kubb_trainer.database.db import Database, PersistenceError
from kubb_trainer.engine import SessionEngine
from kubb_trainer.models.session import GamePhase, SessionType
from kubb_trainer.utils.config import Config
from kubb_trainer.utils.constants import (
    AROUND_THE_PITCH_PRESETS,
    PERFECT_GAME_TARGET,
    TARGET_PRESETS,
)
from kubb_trainer.watch_sync import WatchSync, serialize

MODE_CHOICES = {
    "standard": SessionType.STANDARD,
    "around-the-pitch": SessionType.AROUND_THE_PITCH,
    "inkast-blast": SessionType.INKAST_BLAST,
}


def setup_logging(verbose: bool = False):
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def bridge_available(host: str, port: int, timeout: float = 0.5) -> bool:
    """Check whether a watch bridge is listening."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


def create_link(args, config: Config):
    """Create the appropriate watch transport based on CLI args."""
    mode = args.watch or config.get("watch_mode", "auto")
    interval = (args.interval_min, args.interval_max)

    if mode == "mock":
        from kubb_trainer.mock_watch_link import MockWatchLink
        return MockWatchLink(preset=args.preset, throw_interval=interval)

    host, port = Config.get_bridge_address()
    if mode == "bridge":
        from kubb_trainer.watch_link import WatchLink
        return WatchLink(host=host, port=port)

    # auto: use the bridge when it answers, otherwise simulate
    if bridge_available(host, port):
        from kubb_trainer.watch_link import WatchLink
        logging.info(f"Watch bridge found at {host}:{port}")
        return WatchLink(host=host, port=port)

    logging.info("No watch bridge found, using mock watch")
    from kubb_trainer.mock_watch_link import MockWatchLink
    return MockWatchLink(preset=args.preset, throw_interval=interval)


def start_or_resume(engine: SessionEngine, args, config: Config):
    """Resume the saved active session, or start a new one from args."""
    session = engine.resume_session()
    if session is not None:
        print(f"\n▶️  Resuming {session.session_type.value} session "
              f"({session.total_batons} batons so far)")
        return session

    session_type = MODE_CHOICES[args.mode]
    if session_type == SessionType.AROUND_THE_PITCH:
        budget = args.target_score or config.get("default_target_score")
        return engine.start_session(
            target=budget, session_type=session_type, target_score=budget,
        )
    if session_type == SessionType.INKAST_BLAST:
        phase = GamePhase(args.phase or config.get("default_game_phase", "all"))
        return engine.start_session(
            target=args.target or config.get("default_inkast_rounds"),
            session_type=session_type,
            game_phase=phase,
        )
    return engine.start_session(
        target=args.target or config.get("default_target"),
        session_type=session_type,
    )


def run_session(args):
    """Run a practice session: throws arrive from the watch link."""
    app = QCoreApplication(sys.argv)
    config = Config()

    db = Database()
    engine = SessionEngine(db)
    link = create_link(args, config)

    sync = WatchSync(engine, link, haptics=config.get("haptics_enabled", True))

    def finish():
        if engine.has_active_session() and engine.complete_session():
            session = engine.session
            print(f"\n{'='*60}")
            print(f"  🏆 Session complete")
            print(f"{'='*60}")
            print(f"  Batons:        {session.total_batons}")
            print(f"  Kubbs:         {session.total_kubbs}")
            print(f"  Accuracy:      {session.hit_rate:.1%}")
            print(f"  Best streak:   {session.best_streak}")
            print(f"{'='*60}")
        shutdown()

    def on_session_changed(session):
        if session is None or session.is_complete:
            return
        state = serialize(session)
        line = "  ".join(f"{item.label}: {item.value}" for item in state.context_items)
        print(f"  {state.title} | {line}")

        feasibility = engine.feasibility
        if feasibility is not None and feasibility.level is not None:
            print(f"  ⚠️  {feasibility.message}")

        if engine.is_target_reached:
            # Complete outside the listener loop
            QTimer.singleShot(0, finish)

    def on_connected(connected):
        print("\n✅ Watch connected" if connected else "\n⚪ Watch disconnected")

    def on_error(msg):
        print(f"\n❌ Error: {msg}")

    engine.add_listener(on_session_changed)
    link.connection_changed.connect(on_connected)
    link.error_occurred.connect(on_error)

    def shutdown():
        sync.end_remote_session()
        link.stop()
        link.wait(3000)
        db.close()
        app.quit()

    # Handle Ctrl+C gracefully
    def signal_handler(sig, frame):
        print("\n\nPausing session and shutting down...")
        try:
            engine.pause_session()
        except PersistenceError as e:
            print(f"❌ Could not save session: {e}")
        shutdown()

    signal.signal(signal.SIGINT, signal_handler)

    try:
        session = start_or_resume(engine, args, config)
    except PersistenceError as e:
        print(f"❌ Could not start session: {e}")
        db.close()
        sys.exit(1)
    print(f"   Mode: {session.session_type.value}, target: {session.target}")
    print(f"   Waiting for throws... (Ctrl+C to pause and quit)\n")

    link.start()

    # Keep the event loop waking up so SIGINT is handled
    timer = QTimer()
    timer.timeout.connect(lambda: None)
    timer.start(100)

    sys.exit(app.exec())


def show_history(args):
    """Print saved sessions, newest first."""
    db = Database()
    try:
        sessions = db.get_all_sessions()
    finally:
        db.close()

    if not sessions:
        print("No sessions yet.")
        return
    print(f"\n{'Date':<17} {'Mode':<15} {'Batons':>6} {'Kubbs':>6} {'Acc':>6}  Status")
    for s in sessions:
        status = "done" if s.is_complete else ("paused" if s.is_paused else "active")
        print(
            f"{s.date:%Y-%m-%d %H:%M}  {s.session_type.value:<15} "
            f"{s.total_batons:>6} {s.total_kubbs:>6} {s.hit_rate:>6.1%}  {status}"
        )


def show_stats(args):
    """Print training statistics for one mode."""
    from kubb_trainer.stats import summarize_sessions

    session_type = MODE_CHOICES[args.mode]
    db = Database()
    try:
        sessions = db.get_all_sessions(session_type)
    finally:
        db.close()

    s = summarize_sessions(sessions, session_type)
    if s.total_sessions == 0:
        print(f"No completed {session_type.value} sessions yet.")
        return

    print(f"\n{'='*60}")
    print(f"  {session_type.value} statistics ({s.total_sessions} sessions)")
    print(f"{'='*60}")
    print(f"  Batons / Kubbs:     {s.total_batons} / {s.total_kubbs}")
    print(f"  Overall accuracy:   {s.overall_accuracy:.1%}")
    print(f"  Best session:       {s.best_session_accuracy:.1%}")
    print(f"  Best streak:        {s.best_streak}")
    print(f"  Perfect rounds:     {s.perfect_rounds}")
    print(f"  Baseline clears:    {s.baseline_clears}")
    if s.king_attempts:
        print(f"  King:               {s.king_hits}/{s.king_attempts}")
    if s.perfect_games:
        print(f"  Perfect games:      {s.perfect_games}")
    if s.par_rounds:
        print(f"  Rounds at par:      {s.rounds_at_par}/{s.par_rounds} ({s.par_rate:.0%})")
    print(f"  First throw:        {s.first_throw_accuracy:.1%}")
    print(f"  Clutch:             {s.clutch_accuracy:.1%}")
    print(f"  Consistency:        {s.consistency_score:.1%}")
    print(f"  Early vs late:      {s.early_rounds_accuracy:.1%} / "
          f"{s.late_rounds_accuracy:.1%}")
    print(f"  Recent form:        {s.recent_accuracy:.1%} "
          f"({'improving' if s.is_improving else 'steady'})")
    print(f"  Trend per session:  {s.accuracy_trend:+.2%}")
    zones = ", ".join(f"{k}={v}" for k, v in s.performance_zones.items())
    print(f"  Zones:              {zones}")
    print(f"{'='*60}")


def main():
    parser = argparse.ArgumentParser(
        description="Kubb Trainer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Training mode
    parser.add_argument(
        "--mode", choices=list(MODE_CHOICES), default="standard",
        help="Training mode (default: standard)",
    )
    parser.add_argument(
        "--target", type=int, default=None,
        help=(
            "Baton target (standard, e.g. "
            f"{', '.join(map(str, TARGET_PRESETS))}) "
            "or round target (inkast-blast)"
        ),
    )
    parser.add_argument(
        "--target-score", type=int, default=None,
        help=(
            "Throw budget for around-the-pitch "
            f"(e.g. {', '.join(map(str, AROUND_THE_PITCH_PRESETS))}; "
            f"{PERFECT_GAME_TARGET} is a perfect game)"
        ),
    )
    parser.add_argument(
        "--phase", choices=[p.value for p in GamePhase], default=None,
        help="Game phase for inkast-blast field sizes",
    )

    # Watch selection
    parser.add_argument(
        "--watch", choices=["auto", "bridge", "mock"], default=None,
        help="Watch transport (default: from config, usually auto)",
    )

    # Mock options
    parser.add_argument(
        "--preset", type=str, default="club_player",
        choices=["beginner", "club_player", "elite"],
        help="Player preset for the mock watch (default: club_player)",
    )
    parser.add_argument(
        "--interval-min", type=float, default=2.0,
        help="Minimum seconds between mock throws (default: 2.0)",
    )
    parser.add_argument(
        "--interval-max", type=float, default=5.0,
        help="Maximum seconds between mock throws (default: 5.0)",
    )

    # Browsing
    parser.add_argument(
        "--history", action="store_true",
        help="List saved sessions and exit",
    )
    parser.add_argument(
        "--stats", action="store_true",
        help="Show statistics for --mode and exit",
    )

    # Verbosity
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()
    setup_logging(args.verbose)

    if args.history:
        show_history(args)
    elif args.stats:
        show_stats(args)
    else:
        run_session(args)


if __name__ == "__main__":
    main()
