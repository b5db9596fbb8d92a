"""
Companion watch transport over a local bridge.

The watch app is reached through a bridge process (the phone companion
or a desktop relay) listening on TCP. Both directions carry newline
delimited JSON messages:

    {"method": "updateWatchSession", "arguments": {...}}\\n

Outbound methods: startWatchSession, updateWatchSession,
updateInputConfig, endWatchSession, sendHapticFeedback.
Inbound methods:  onThrowRecorded (WatchThrowEvent JSON),
                  onConnectionStateChanged (bool, watch reachability),
                  onError (str).

The link is advisory. When the bridge is unreachable sends return False
and the reader keeps retrying every few seconds; scoring carries on.

Usage:
    link = WatchLink()
    link.throw_received.connect(on_throw)
    link.start()
"""

import json
import logging
import socket
import time
from typing import Optional

from PyQt6.QtCore import QMutex, QMutexLocker, QThread, pyqtSignal

from kubb_trainer.utils.config import Config
from kubb_trainer.utils.constants import (
    BRIDGE_READ_TIMEOUT_S,
    BRIDGE_RECONNECT_S,
    METHOD_CONNECTION_CHANGED,
    METHOD_END_SESSION,
    METHOD_ERROR,
    METHOD_HAPTIC_FEEDBACK,
    METHOD_START_SESSION,
    METHOD_THROW_RECORDED,
    METHOD_UPDATE_INPUT_CONFIG,
    METHOD_UPDATE_SESSION,
)

logger = logging.getLogger(__name__)

RECV_BUFFER_SIZE = 4096


def encode_message(method: str, arguments=None) -> bytes:
    """Frame one bridge message."""
    return (json.dumps({"method": method, "arguments": arguments}) + "\n").encode("utf-8")


class WatchLink(QThread):
    """Talks to the watch bridge on a background QThread.

    Signals:
        throw_received(dict): Raw WatchThrowEvent JSON from the watch.
        connection_changed(bool): Watch reachable / unreachable.
        error_occurred(str): Bridge or watch reported an error.
    """

    throw_received = pyqtSignal(object)  # dict
    connection_changed = pyqtSignal(bool)
    error_occurred = pyqtSignal(str)

    def __init__(self, host: Optional[str] = None, port: Optional[int] = None,
                 parent=None):
        super().__init__(parent)
        if host is None or port is None:
            default_host, default_port = Config.get_bridge_address()
            host = host or default_host
            port = port or default_port
        self._host = host
        self._port = port
        self._running = False
        self._sock: Optional[socket.socket] = None
        self._sock_mutex = QMutex()
        self._buffer = b""

    def run(self):
        """Main thread loop: connect to the bridge, read messages, reconnect."""
        self._running = True
        logger.info(f"Watch link starting ({self._host}:{self._port})")

        while self._running:
            try:
                sock = socket.create_connection(
                    (self._host, self._port), timeout=BRIDGE_RECONNECT_S
                )
                sock.settimeout(BRIDGE_READ_TIMEOUT_S)
                with QMutexLocker(self._sock_mutex):
                    self._sock = sock
                self._buffer = b""
                logger.info(f"Watch bridge connected ({self._host}:{self._port})")
                self.connection_changed.emit(True)

                self._read_loop()

            except OSError as e:
                logger.warning(f"Watch bridge not reachable: {e}")
                self._wait_before_retry()

            except Exception as e:
                logger.error(f"Watch link error: {e}", exc_info=True)
                self.error_occurred.emit(str(e))
                self._close_socket()
                time.sleep(1.0)

        self._close_socket()
        logger.info("Watch link stopped")

    def _wait_before_retry(self):
        steps = int(BRIDGE_RECONNECT_S / 0.1)
        for _ in range(steps):  # 100ms increments
            if not self._running:
                break
            time.sleep(0.1)

    def _read_loop(self):
        """Read framed messages until the bridge goes away."""
        while self._running:
            try:
                chunk = self._sock.recv(RECV_BUFFER_SIZE)
            except socket.timeout:
                continue
            except OSError as e:
                logger.warning(f"Watch bridge read error: {e}")
                break
            if not chunk:
                logger.warning("Watch bridge closed the connection")
                break

            self._buffer += chunk
            while b"\n" in self._buffer:
                line, self._buffer = self._buffer.split(b"\n", 1)
                if line.strip():
                    self._handle_line(line)

        self._close_socket()
        self.connection_changed.emit(False)
        if self._running:
            self._wait_before_retry()

    def _handle_line(self, line: bytes):
        """Decode one inbound message and emit the matching signal."""
        try:
            message = json.loads(line.decode("utf-8"))
            method = message["method"]
            arguments = message.get("arguments")
        except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError) as e:
            logger.warning(f"Malformed bridge message dropped: {e}")
            self.error_occurred.emit(f"Malformed bridge message: {e}")
            return

        if method == METHOD_THROW_RECORDED:
            if not isinstance(arguments, dict):
                logger.warning("Throw message without a payload dropped")
                return
            logger.debug(f"Watch throw: {arguments}")
            self.throw_received.emit(arguments)
        elif method == METHOD_CONNECTION_CHANGED:
            connected = bool(arguments)
            logger.info(f"Watch {'reachable' if connected else 'unreachable'}")
            self.connection_changed.emit(connected)
        elif method == METHOD_ERROR:
            logger.warning(f"Watch error: {arguments}")
            self.error_occurred.emit(str(arguments))
        else:
            logger.debug(f"Unknown bridge method ignored: {method}")

    def _close_socket(self):
        with QMutexLocker(self._sock_mutex):
            if self._sock is not None:
                try:
                    self._sock.close()
                except OSError:
                    pass
                self._sock = None

    def _send(self, method: str, arguments=None) -> bool:
        """Send one message. False when the bridge is not connected."""
        data = encode_message(method, arguments)
        with QMutexLocker(self._sock_mutex):
            if self._sock is None:
                logger.debug(f"{method} not sent: bridge not connected")
                return False
            try:
                self._sock.sendall(data)
            except OSError as e:
                logger.warning(f"Failed to send {method}: {e}")
                return False
        return True

    # =========================================================================
    # Outbound API
    # =========================================================================

    def start_session(self, state: dict) -> bool:
        return self._send(METHOD_START_SESSION, state)

    def update_session(self, state: dict) -> bool:
        return self._send(METHOD_UPDATE_SESSION, state)

    def send_input_config(self, config: dict) -> bool:
        return self._send(METHOD_UPDATE_INPUT_CONFIG, config)

    def end_session(self) -> bool:
        return self._send(METHOD_END_SESSION)

    def send_haptic_feedback(self, kind: str) -> bool:
        return self._send(METHOD_HAPTIC_FEEDBACK, {"type": kind})

    def stop(self):
        """Signal the thread to stop."""
        self._running = False

    def is_connected(self) -> bool:
        """Check if the bridge is currently connected."""
        return self._sock is not None
