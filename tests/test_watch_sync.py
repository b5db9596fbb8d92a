"""
Tests for the watch sync protocol: serialization, outbound pushes and
inbound throw reconciliation. Uses MockWatchLink as the transport,
which records every outbound message.
"""

from datetime import datetime

import pytest

from kubb_trainer.mock_watch_link import MockWatchLink
from kubb_trainer.models.session import GamePhase, SessionType
from kubb_trainer.models.watch_state import (
    WatchSessionState,
    WatchSessionType,
    WatchThrowEvent,
    WatchThrowType,
)
from kubb_trainer.utils.constants import (
    METHOD_END_SESSION,
    METHOD_HAPTIC_FEEDBACK,
    METHOD_START_SESSION,
    METHOD_UPDATE_INPUT_CONFIG,
    METHOD_UPDATE_SESSION,
)
from kubb_trainer.watch_sync import WatchSync, serialize


@pytest.fixture
def link(qtbot):
    return MockWatchLink(seed=1)


@pytest.fixture
def sync(engine, link):
    return WatchSync(engine, link)


def _methods(link):
    return [method for method, _ in link.sent]


def _items(state):
    return {item.label: item.value for item in state.context_items}


def _event(session_id, is_hit=True, throw_type=WatchThrowType.SIMPLE,
           kubbs_hit=None, second=0):
    return WatchThrowEvent(
        session_id=session_id,
        throw_type=throw_type,
        is_hit=is_hit,
        kubbs_hit=kubbs_hit,
        timestamp=datetime(2024, 6, 1, 10, 0, second),
    ).to_json()


class TestSerialize:

    def test_eight_meter_items(self, engine):
        session = engine.start_session(target=30)
        engine.record_throw(True)
        state = serialize(session)
        assert state.session_type == WatchSessionType.EIGHT_METER
        assert state.title == "8M Training"
        assert _items(state) == {"Round": "1", "Throw": "2/6", "Total": "1/30"}
        assert state.context_items[0].type.value == "primary"
        assert state.is_active

    def test_eight_meter_after_round(self, engine):
        session = engine.start_session(target=30)
        for _ in range(6):
            engine.record_throw(False)
        assert _items(serialize(session))["Round"] == "2"
        assert _items(serialize(session))["Throw"] == "1/6"

    def test_around_the_pitch_items(self, engine):
        session = engine.start_session(
            target=15, session_type=SessionType.AROUND_THE_PITCH, target_score=15,
        )
        for _ in range(5):
            engine.record_throw(True)
        state = serialize(session)
        assert state.title == "Around Pitch"
        assert _items(state) == {"Score": "5/15", "Baseline": "2", "Throws": "5"}

    def test_inkast_items(self, engine):
        session = engine.start_session(
            target=4, session_type=SessionType.INKAST_BLAST, game_phase=GamePhase.END,
        )
        field = session.current_round.field_kubbs
        engine.record_throw(True, kubbs_hit=2)
        items = _items(serialize(session))
        assert items["Kubbs Left"] == str(field - 2)
        assert items["Rounds"] == "0/4"

    def test_regenerated_each_call(self, engine):
        session = engine.start_session(target=30)
        first = serialize(session)
        engine.record_throw(True)
        second = serialize(session)
        assert _items(first)["Total"] == "0/30"
        assert _items(second)["Total"] == "1/30"

    def test_wire_field_names(self, engine):
        session = engine.start_session(target=30)
        data = serialize(session).to_json()
        assert set(data) == {
            "sessionId", "sessionType", "title", "contextItems", "isActive", "lastUpdated",
        }
        assert data["sessionType"] == "eightMeter"
        assert set(data["contextItems"][0]) == {"label", "value", "type"}
        assert WatchSessionState.from_json(data).to_json() == data


class TestOutbound:

    def test_start_pushes_session_and_input_config(self, engine, sync, link):
        session = engine.start_session(target=30)
        assert _methods(link)[:2] == [METHOD_START_SESSION, METHOD_UPDATE_INPUT_CONFIG]
        assert link.session_id == session.id
        assert sync.remote_session_id == session.id

    def test_throw_pushes_full_state(self, engine, sync, link):
        engine.start_session(target=30)
        engine.record_throw(True)
        method, state = [m for m in link.sent if m[0] == METHOD_UPDATE_SESSION][-1]
        assert state["contextItems"][-1]["value"] == "1/30"

    def test_completion_pushes_inactive_then_ends(self, engine, sync, link):
        engine.start_session(target=1)
        engine.record_throw(True)
        link.sent.clear()
        engine.complete_session()
        assert _methods(link) == [METHOD_UPDATE_SESSION, METHOD_END_SESSION]
        assert link.sent[0][1]["isActive"] is False
        assert not sync.is_remote_active

    def test_abandon_ends_remote(self, engine, sync, link):
        engine.start_session(target=30)
        engine.abandon_session()
        assert _methods(link)[-1] == METHOD_END_SESSION
        assert not sync.is_remote_active

    def test_start_while_active_ends_previous(self, engine, sync, link):
        engine.start_session(target=30)
        link.sent.clear()
        sync.start_remote_session()
        assert _methods(link)[:2] == [METHOD_END_SESSION, METHOD_START_SESSION]

    def test_king_input_config_pushed(self, engine, sync, link):
        engine.start_session(
            target=20, session_type=SessionType.AROUND_THE_PITCH, target_score=20,
        )
        for _ in range(10):
            engine.record_throw(True)
        assert link.input_config["throwType"] == "king"
        assert link.input_config["showKingOption"] is True


class TestInbound:

    def test_matching_event_recorded(self, engine, sync, link):
        session = engine.start_session(target=30)
        assert sync.handle_throw_event(_event(session.id, is_hit=True))
        assert session.total_batons == 1
        assert session.total_kubbs == 1
        assert link.sent[-1] == (METHOD_HAPTIC_FEEDBACK, {"type": "success"})

    def test_miss_sends_failure_haptic(self, engine, sync, link):
        session = engine.start_session(target=30)
        sync.handle_throw_event(_event(session.id, is_hit=False))
        assert link.sent[-1] == (METHOD_HAPTIC_FEEDBACK, {"type": "failure"})

    def test_foreign_session_ignored(self, engine, sync, link):
        session = engine.start_session(target=30)
        assert not sync.handle_throw_event(_event("some-other-session"))
        assert session.total_batons == 0
        assert session.total_kubbs == 0

    def test_duplicate_event_counted_once(self, engine, sync):
        session = engine.start_session(target=30)
        payload = _event(session.id)
        assert sync.handle_throw_event(payload)
        assert not sync.handle_throw_event(dict(payload))
        assert session.total_batons == 1

    def test_distinct_events_both_counted(self, engine, sync):
        session = engine.start_session(target=30)
        sync.handle_throw_event(_event(session.id, second=1))
        sync.handle_throw_event(_event(session.id, second=2))
        assert session.total_batons == 2

    def test_malformed_payload_dropped(self, engine, sync):
        session = engine.start_session(target=30)
        assert not sync.handle_throw_event({"sessionId": session.id, "isHit": True})
        assert not sync.handle_throw_event({"sessionId": session.id, "throwType": "bogus",
                                            "isHit": True, "timestamp": "now"})
        assert session.total_batons == 0

    def test_multi_kubb_event(self, engine, sync):
        session = engine.start_session(
            target=3, session_type=SessionType.INKAST_BLAST, game_phase=GamePhase.END,
        )
        sync.handle_throw_event(_event(
            session.id, throw_type=WatchThrowType.MULTI_KUBB, kubbs_hit=3,
        ))
        assert session.total_kubbs == 3

    def test_event_timestamp_kept(self, engine, sync):
        session = engine.start_session(target=30)
        sync.handle_throw_event(_event(session.id, second=42))
        assert session.all_throws[0].timestamp == datetime(2024, 6, 1, 10, 0, 42)

    def test_signal_routes_to_engine(self, engine, sync, link):
        session = engine.start_session(target=30)
        link.trigger_throw()
        assert session.total_batons == 1


class TestConnectivity:

    def test_reconnect_resyncs_full_state(self, engine, sync, link):
        engine.start_session(target=30)
        engine.record_throw(True)
        link.sent.clear()
        sync.handle_connection_change(True)
        assert _methods(link) == [METHOD_START_SESSION, METHOD_UPDATE_INPUT_CONFIG]
        assert link.sent[0][1]["contextItems"][-1]["value"] == "1/30"

    def test_disconnect_sends_nothing(self, engine, sync, link):
        engine.start_session(target=30)
        link.sent.clear()
        sync.handle_connection_change(False)
        assert link.sent == []

    def test_scoring_continues_when_sends_fail(self, engine, link):
        link.start_session = lambda state: False
        link.update_session = lambda state: False
        WatchSync(engine, link)
        session = engine.start_session(target=30)
        engine.record_throw(True)
        assert session.total_batons == 1
