"""
Tests for the watch transports: the bridge link's message framing and
dispatch, and the mock watch's simulated throws.
"""

import json
import socket

import pytest

from kubb_trainer.mock_watch_link import PRESETS, MockWatchLink
from kubb_trainer.models.watch_state import WatchThrowEvent
from kubb_trainer.utils.constants import (
    METHOD_CONNECTION_CHANGED,
    METHOD_ERROR,
    METHOD_THROW_RECORDED,
    METHOD_UPDATE_SESSION,
)
from kubb_trainer.watch_link import WatchLink, encode_message


THROW_PAYLOAD = {
    "sessionId": "abc",
    "throwType": "simple",
    "isHit": True,
    "kubbsHit": None,
    "timestamp": "2024-06-01T10:00:00",
}


class TestMockWatchLink:
    """Tests for MockWatchLink."""

    def test_no_throw_without_session(self, qtbot):
        link = MockWatchLink(seed=1)
        assert link.trigger_throw() is None

    def test_throw_targets_pushed_session(self, qtbot):
        link = MockWatchLink(seed=1)
        results = []
        link.throw_received.connect(results.append)
        link.start_session({"sessionId": "s-1"})
        link.trigger_throw()

        assert len(results) == 1
        event = WatchThrowEvent.from_json(results[0])
        assert event.session_id == "s-1"

    def test_multi_kubb_respects_options(self, qtbot):
        link = MockWatchLink(preset="elite", seed=3)
        link.start_session({"sessionId": "s-1"})
        link.send_input_config({"throwType": "multiKubb", "kubbOptions": [1, 2]})
        payloads = [link.trigger_throw() for _ in range(100)]
        assert all(p["throwType"] == "multiKubb" for p in payloads)
        assert all(0 <= p["kubbsHit"] <= 2 for p in payloads)
        assert all((p["kubbsHit"] > 0) == p["isHit"] for p in payloads)

    def test_king_throws_follow_config(self, qtbot):
        link = MockWatchLink(seed=2)
        link.start_session({"sessionId": "s-1"})
        link.send_input_config({"throwType": "king", "showKingOption": True})
        assert link.trigger_throw()["throwType"] == "king"

    def test_presets_differ(self, qtbot):
        rates = {}
        for preset in ["beginner", "elite"]:
            link = MockWatchLink(preset=preset, seed=5)
            link.start_session({"sessionId": "s-1"})
            hits = [link.trigger_throw()["isHit"] for _ in range(300)]
            rates[preset] = sum(hits) / len(hits)
        assert rates["elite"] > rates["beginner"]

    def test_unknown_preset_falls_back(self, qtbot):
        link = MockWatchLink(preset="nonexistent")
        assert link._preset is PRESETS["club_player"]

    def test_end_session_stops_throws(self, qtbot):
        link = MockWatchLink(seed=1)
        link.start_session({"sessionId": "s-1"})
        link.end_session()
        assert link.trigger_throw() is None


class TestWatchLinkMessages:
    """Tests for WatchLink framing and inbound dispatch."""

    def test_encode_is_newline_delimited_json(self):
        data = encode_message(METHOD_UPDATE_SESSION, {"title": "8M Training"})
        assert data.endswith(b"\n")
        assert json.loads(data) == {
            "method": "updateWatchSession",
            "arguments": {"title": "8M Training"},
        }

    def test_send_without_bridge_returns_false(self, qtbot):
        link = WatchLink(host="127.0.0.1", port=1)
        assert link.update_session({"title": "x"}) is False
        assert link.send_haptic_feedback("success") is False
        assert not link.is_connected()

    def test_send_writes_to_socket(self, qtbot):
        link = WatchLink(host="127.0.0.1", port=1)
        ours, theirs = socket.socketpair()
        try:
            link._sock = ours
            assert link.send_haptic_feedback("failure") is True
            line = theirs.recv(4096)
            assert json.loads(line) == {
                "method": "sendHapticFeedback",
                "arguments": {"type": "failure"},
            }
        finally:
            ours.close()
            theirs.close()

    def test_throw_message_emits_payload(self, qtbot):
        link = WatchLink(host="127.0.0.1", port=1)
        results = []
        link.throw_received.connect(results.append)
        link._handle_line(encode_message(METHOD_THROW_RECORDED, THROW_PAYLOAD).strip())
        assert results == [THROW_PAYLOAD]

    def test_connection_message(self, qtbot):
        link = WatchLink(host="127.0.0.1", port=1)
        states = []
        link.connection_changed.connect(states.append)
        link._handle_line(encode_message(METHOD_CONNECTION_CHANGED, False).strip())
        link._handle_line(encode_message(METHOD_CONNECTION_CHANGED, True).strip())
        assert states == [False, True]

    def test_error_message(self, qtbot):
        link = WatchLink(host="127.0.0.1", port=1)
        errors = []
        link.error_occurred.connect(errors.append)
        link._handle_line(encode_message(METHOD_ERROR, "watch app crashed").strip())
        assert errors == ["watch app crashed"]

    def test_malformed_line_reported(self, qtbot):
        link = WatchLink(host="127.0.0.1", port=1)
        errors, throws = [], []
        link.error_occurred.connect(errors.append)
        link.throw_received.connect(throws.append)
        link._handle_line(b"{not json")
        assert len(errors) == 1
        assert throws == []


class TestWatchLinkBridge:
    """End-to-end against a local TCP bridge."""

    @pytest.fixture
    def bridge(self):
        server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        server.bind(("127.0.0.1", 0))
        server.listen(1)
        yield server
        server.close()

    def test_connects_and_receives_throw(self, qtbot, bridge):
        host, port = bridge.getsockname()
        link = WatchLink(host=host, port=port)

        with qtbot.waitSignal(link.connection_changed, timeout=3000) as blocker:
            link.start()
        assert blocker.args == [True]

        conn, _ = bridge.accept()
        try:
            with qtbot.waitSignal(link.throw_received, timeout=3000) as blocker:
                conn.sendall(encode_message(METHOD_THROW_RECORDED, THROW_PAYLOAD))
            assert blocker.args == [THROW_PAYLOAD]

            assert link.update_session({"title": "8M Training"})
            conn.settimeout(3.0)
            received = conn.recv(4096)
            assert json.loads(received)["method"] == "updateWatchSession"
        finally:
            link.stop()
            link.wait(3000)
            conn.close()
