"""A small MQTT 3.1.1 client over a byte transport."""

from __future__ import annotations

import select
import socket
import time
from collections.abc import Callable
from typing import Any, Optional, Union

from edgewire.mqtt_packet import (
    DEFAULT_KEEP_ALIVE,
    MAX_HEADER_SIZE,
    QOS1,
    PacketType,
    State,
    build_connect,
    build_header,
    build_publish,
    build_subscribe,
    build_unsubscribe,
    build_puback,
    encode_string,
    parse_publish,
)

DEFAULT_PORT = 1883
DEFAULT_BUFFER_SIZE = 256
DEFAULT_SOCKET_TIMEOUT = 15

Text = Union[str, bytes, bytearray]
MessageCallback = Callable[[str, bytes], Any]


def _as_bytes(value: Optional[Text]) -> bytes:
    if value is None:
        return b""
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


class MqttConnectError(ConnectionError):
    """Raised when a connection to the broker cannot be set up."""

    def __init__(self, state: State, message: str = "") -> None:
        self.state = State(state)
        super().__init__(message or f"MQTT connect failed: {self.state.name}")


class SocketTransport:
    """A TCP byte transport with non-blocking availability checks."""

    def __init__(self, timeout: float = 10.0) -> None:
        self.timeout = timeout
        self._sock: Optional[socket.socket] = None
        self._buffer = bytearray()
        self._eof = False

    def connect(self, host: str, port: int) -> bool:
        """Open a connection; return whether it succeeded."""
        self.stop()
        try:
            self._sock = socket.create_connection((host, port), timeout=self.timeout)
        except OSError:
            self._sock = None
            return False
        self._buffer.clear()
        self._eof = False
        return True

    def _pump(self) -> None:
        if self._sock is None or self._eof:
            return
        try:
            readable, _, _ = select.select([self._sock], [], [], 0)
            if readable:
                chunk = self._sock.recv(4096)
                if chunk:
                    self._buffer += chunk
                else:
                    self._eof = True
        except (OSError, ValueError):
            self._eof = True

    def connected(self) -> bool:
        """True while the socket is open or unread data remains."""
        if self._sock is None:
            return False
        self._pump()
        return not self._eof or bool(self._buffer)

    def available(self) -> int:
        """Number of bytes that can be read without waiting."""
        self._pump()
        return len(self._buffer)

    def read(self) -> int:
        """Return the next byte, or -1 when none is available."""
        self._pump()
        if not self._buffer:
            return -1
        value = self._buffer[0]
        del self._buffer[0]
        return value

    def write(self, data: Union[int, bytes, bytearray]) -> int:
        """Send ``data``; return the number of bytes sent."""
        if isinstance(data, int):
            data = bytes([data])
        if self._sock is None:
            return 0
        try:
            self._sock.sendall(data)
        except OSError:
            self._eof = True
            return 0
        return len(data)

    def flush(self) -> None:
        """Discard any unread input."""
        self._buffer.clear()

    def stop(self) -> None:
        """Close the connection."""
        if self._sock is not None:
            try:
                self._sock.close()
            except OSError:
                pass
        self._sock = None
        self._buffer.clear()
        self._eof = True


class MqttClient:
    """Connects to a broker, publishes, subscribes and dispatches messages."""

    def __init__(
        self,
        transport: Any = None,
        host: Optional[str] = None,
        port: int = DEFAULT_PORT,
        callback: Optional[MessageCallback] = None,
        stream: Any = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.transport = transport if transport is not None else SocketTransport()
        self.host = host
        self.port = port
        self.callback = callback
        self.stream = stream
        self.keep_alive = DEFAULT_KEEP_ALIVE
        self.socket_timeout = DEFAULT_SOCKET_TIMEOUT
        self._clock = clock
        self._buffer_size = DEFAULT_BUFFER_SIZE
        self._state = State.DISCONNECTED
        self._next_msg_id = 1
        self._last_in = 0.0
        self._last_out = 0.0
        self._ping_outstanding = False

    @property
    def state(self) -> State:
        return self._state

    @property
    def buffer_size(self) -> int:
        return self._buffer_size

    @buffer_size.setter
    def buffer_size(self, size: int) -> None:
        if size <= 0 or size > 0xFFFF:
            raise ValueError(f"buffer size out of range: {size}")
        self._buffer_size = size

    # Sending

    def _send(self, data: bytes) -> int:
        rc = self.transport.write(data)
        self._last_out = self._clock()
        return rc

    def _take_msg_id(self) -> int:
        self._next_msg_id = (self._next_msg_id + 1) & 0xFFFF
        if self._next_msg_id == 0:
            self._next_msg_id = 1
        return self._next_msg_id

    # Receiving

    def _read_byte(self) -> Optional[int]:
        start = self._clock()
        while not self.transport.available():
            if self._clock() - start >= self.socket_timeout:
                return None
            time.sleep(0)
        value = self.transport.read()
        return None if value < 0 else value

    def _read_packet(self) -> Optional[tuple[bytes, int]]:
        """Read one packet; return it with the size of its length field, or None."""
        header = self._read_byte()
        if header is None:
            return None
        packet = bytearray([header])
        is_publish = (header & 0xF0) == PacketType.PUBLISH
        length = 0
        multiplier = 1
        while True:
            if len(packet) == 5:
                self._state = State.DISCONNECTED
                self.transport.stop()
                return None
            digit = self._read_byte()
            if digit is None:
                return None
            packet.append(digit)
            length += (digit & 0x7F) * multiplier
            multiplier <<= 7
            if not digit & 0x80:
                break
        length_length = len(packet) - 1

        start = 0
        skip = 0
        if is_publish:
            for _ in range(2):
                byte = self._read_byte()
                if byte is None:
                    return None
                packet.append(byte)
            skip = int.from_bytes(packet[length_length + 1:length_length + 3], "big")
            start = 2
            if header & QOS1:
                skip += 2

        total = len(packet)
        consumed = 0
        for _ in range(start, length):
            digit = self._read_byte()
            if digit is None:
                return None
            consumed += 1
            if self.stream is not None and is_publish and consumed > skip:
                self.stream.write(bytes([digit]))
            if len(packet) < self._buffer_size:
                packet.append(digit)
            total += 1

        if self.stream is None and total > self._buffer_size:
            return None
        return bytes(packet), length_length

    # Public API

    def connected(self) -> bool:
        """True while the session with the broker is up."""
        if self.transport is None:
            return False
        if not self.transport.connected():
            if self._state == State.CONNECTED:
                self._state = State.CONNECTION_LOST
                self.transport.flush()
                self.transport.stop()
            return False
        return self._state == State.CONNECTED

    def connect(
        self,
        client_id: Text,
        user: Optional[Text] = None,
        password: Optional[Text] = None,
        will_topic: Optional[Text] = None,
        will_qos: int = 0,
        will_retain: bool = False,
        will_message: Optional[Text] = None,
        clean_session: bool = True,
    ) -> bool:
        """Open the session; raise MqttConnectError when the broker cannot be reached or refuses."""
        if self.connected():
            return True

        if not self.transport.connected():
            if self.host is None or not self.transport.connect(self.host, self.port):
                self._state = State.CONNECT_FAILED
                raise MqttConnectError(self._state)

        self._next_msg_id = 1
        packet = build_connect(
            client_id,
            user,
            password,
            will_topic,
            will_qos,
            will_retain,
            will_message,
            clean_session,
            self.keep_alive,
        )
        body_length = len(packet) - len(build_header(0, len(packet)))
        if MAX_HEADER_SIZE + body_length > self._buffer_size:
            self.transport.stop()
            raise ValueError("CONNECT packet does not fit in the buffer")

        self._send(packet)
        self._last_in = self._last_out = self._clock()

        while not self.transport.available():
            if self._clock() - self._last_in >= self.socket_timeout:
                self._state = State.CONNECTION_TIMEOUT
                self.transport.stop()
                raise MqttConnectError(self._state)
            time.sleep(0)

        result = self._read_packet()
        if result is not None and len(result[0]) == 4:
            reply = result[0]
            if reply[3] == 0:
                self._last_in = self._clock()
                self._ping_outstanding = False
                self._state = State.CONNECTED
                return True
            try:
                self._state = State(reply[3])
            except ValueError:
                self._state = State.CONNECT_FAILED
        self.transport.stop()
        raise MqttConnectError(self._state)

    def disconnect(self) -> None:
        """Send DISCONNECT and close the transport."""
        self.transport.write(bytes([PacketType.DISCONNECT, 0]))
        self._state = State.DISCONNECTED
        self.transport.flush()
        self.transport.stop()
        self._last_in = self._last_out = self._clock()

    def publish(self, topic: Text, payload: Optional[Text] = None, retained: bool = False) -> bool:
        """Send a QoS 0 message; False when not connected or too large for the buffer."""
        if not self.connected():
            return False
        topic_bytes = _as_bytes(topic)
        body = _as_bytes(payload)
        if self._buffer_size < MAX_HEADER_SIZE + 2 + len(topic_bytes) + len(body):
            return False
        packet = build_publish(topic_bytes, body, retained)
        return self._send(packet) == len(packet)

    def begin_publish(self, topic: Text, length: int, retained: bool = False) -> bool:
        """Start a message of ``length`` payload bytes, to be sent with write()."""
        if not self.connected():
            return False
        header = PacketType.PUBLISH | (1 if retained else 0)
        topic_field = encode_string(topic)
        packet = build_header(header, length + len(topic_field)) + topic_field
        rc = self.transport.write(packet)
        self._last_out = self._clock()
        return rc == len(packet)

    def write(self, data: Union[int, bytes, bytearray]) -> int:
        """Send payload bytes of a message started with begin_publish()."""
        if isinstance(data, int):
            data = bytes([data])
        self._last_out = self._clock()
        return self.transport.write(bytes(data))

    def end_publish(self) -> bool:
        """Finish a message started with begin_publish()."""
        return True

    def subscribe(self, topic: Text, qos: int = 0) -> bool:
        """Subscribe to ``topic`` with QoS 0 or 1."""
        if not 0 <= qos <= 1:
            raise ValueError(f"unsupported subscription QoS: {qos}")
        topic_bytes = _as_bytes(topic)
        if self._buffer_size < 9 + len(topic_bytes):
            return False
        if not self.connected():
            return False
        packet = build_subscribe(self._take_msg_id(), topic_bytes, qos)
        return self._send(packet) == len(packet)

    def unsubscribe(self, topic: Text) -> bool:
        """Cancel a subscription to ``topic``."""
        topic_bytes = _as_bytes(topic)
        if self._buffer_size < 9 + len(topic_bytes):
            return False
        if not self.connected():
            return False
        packet = build_unsubscribe(self._take_msg_id(), topic_bytes)
        return self._send(packet) == len(packet)

    def loop(self) -> bool:
        """Keep the session alive and handle one incoming packet; False when not connected."""
        if not self.connected():
            return False
        now = self._clock()
        if now - self._last_in > self.keep_alive or now - self._last_out > self.keep_alive:
            if self._ping_outstanding:
                self._state = State.CONNECTION_TIMEOUT
                self.transport.stop()
                return False
            self.transport.write(bytes([PacketType.PINGREQ, 0]))
            self._last_out = now
            self._last_in = now
            self._ping_outstanding = True

        if self.transport.available():
            result = self._read_packet()
            if result is not None:
                packet, length_length = result
                self._last_in = now
                kind = packet[0] & 0xF0
                if kind == PacketType.PUBLISH:
                    self._dispatch(packet, length_length, now)
                elif kind == PacketType.PINGREQ:
                    self.transport.write(bytes([PacketType.PINGRESP, 0]))
                elif kind == PacketType.PINGRESP:
                    self._ping_outstanding = False
            elif not self.connected():
                return False
        return True

    def _dispatch(self, packet: bytes, length_length: int, now: float) -> None:
        if self.callback is None:
            return
        try:
            message = parse_publish(packet, length_length)
        except ValueError:
            return
        self.callback(message.topic, message.payload)
        if message.msg_id is not None:
            self.transport.write(build_puback(message.msg_id))
            self._last_out = now