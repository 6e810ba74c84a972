"""Building and parsing of MQTT 3.1.1 control packets."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Union

PROTOCOL_NAME = b"MQTT"
PROTOCOL_LEVEL = 4
MAX_HEADER_SIZE = 5
MAX_REMAINING_LENGTH = 0x0FFFFFFF
DEFAULT_KEEP_ALIVE = 15

QOS0 = 0 << 1
QOS1 = 1 << 1
QOS2 = 2 << 1

Text = Union[str, bytes, bytearray]


class State(enum.IntEnum):
    """Connection state of a client, including the broker's refusal codes."""

    CONNECTION_TIMEOUT = -4
    CONNECTION_LOST = -3
    CONNECT_FAILED = -2
    DISCONNECTED = -1
    CONNECTED = 0
    CONNECT_BAD_PROTOCOL = 1
    CONNECT_BAD_CLIENT_ID = 2
    CONNECT_UNAVAILABLE = 3
    CONNECT_BAD_CREDENTIALS = 4
    CONNECT_UNAUTHORIZED = 5


class PacketType(enum.IntEnum):
    """Control packet types, already shifted into the high nibble."""

    CONNECT = 1 << 4
    CONNACK = 2 << 4
    PUBLISH = 3 << 4
    PUBACK = 4 << 4
    PUBREC = 5 << 4
    PUBREL = 6 << 4
    PUBCOMP = 7 << 4
    SUBSCRIBE = 8 << 4
    SUBACK = 9 << 4
    UNSUBSCRIBE = 10 << 4
    UNSUBACK = 11 << 4
    PINGREQ = 12 << 4
    PINGRESP = 13 << 4
    DISCONNECT = 14 << 4
    RESERVED = 15 << 4


@dataclass(frozen=True)
class PublishMessage:
    """An incoming application message."""

    topic: str
    payload: bytes
    msg_id: Optional[int] = None
    qos: int = 0
    retained: bool = False


def _as_bytes(text: Text) -> bytes:
    if isinstance(text, str):
        return text.encode("utf-8")
    if isinstance(text, (bytes, bytearray)):
        return bytes(text)
    raise TypeError(f"expected str or bytes, not {type(text).__name__}")


def _check_msg_id(msg_id: int) -> bytes:
    if not 0 <= msg_id <= 0xFFFF:
        raise ValueError(f"message id out of range: {msg_id}")
    return msg_id.to_bytes(2, "big")


def encode_remaining_length(length: int) -> bytes:
    """Encode ``length`` as the variable-length remaining-length field."""
    if not 0 <= length <= MAX_REMAINING_LENGTH:
        raise ValueError(f"remaining length out of range: {length}")
    out = bytearray()
    while True:
        digit = length & 0x7F
        length >>= 7
        if length:
            digit |= 0x80
        out.append(digit)
        if not length:
            return bytes(out)


def build_header(header: int, length: int) -> bytes:
    """Return the fixed header: the type byte followed by the remaining length."""
    if not 0 <= header <= 0xFF:
        raise ValueError(f"header byte out of range: {header}")
    return bytes([header]) + encode_remaining_length(length)


def encode_string(text: Text) -> bytes:
    """Return ``text`` prefixed by its two-byte big-endian length."""
    data = _as_bytes(text)
    if len(data) > 0xFFFF:
        raise ValueError(f"string too long for MQTT: {len(data)} bytes")
    return len(data).to_bytes(2, "big") + data


def _packet(header: int, body: bytes) -> bytes:
    return build_header(header, len(body)) + body


def build_connect(
    client_id: Text,
    user: Optional[Text] = None,
    password: Optional[Text] = None,
    will_topic: Optional[Text] = None,
    will_qos: int = 0,
    will_retain: bool = False,
    will_message: Optional[Text] = None,
    clean_session: bool = True,
    keep_alive: int = DEFAULT_KEEP_ALIVE,
) -> bytes:
    """Return a complete CONNECT packet.

    A password is only sent together with a user name.
    """
    if not 0 <= will_qos <= 2:
        raise ValueError(f"invalid will QoS: {will_qos}")
    if not 0 <= keep_alive <= 0xFFFF:
        raise ValueError(f"keep alive out of range: {keep_alive}")

    flags = 0
    if will_topic is not None:
        flags = 0x04 | (will_qos << 3) | (int(bool(will_retain)) << 5)
    if clean_session:
        flags |= 0x02
    if user is not None:
        flags |= 0x80
        if password is not None:
            flags |= 0x40

    body = bytearray()
    body += encode_string(PROTOCOL_NAME)
    body.append(PROTOCOL_LEVEL)
    body.append(flags)
    body += keep_alive.to_bytes(2, "big")
    body += encode_string(client_id)
    if will_topic is not None:
        body += encode_string(will_topic)
        body += encode_string(will_message if will_message is not None else b"")
    if user is not None:
        body += encode_string(user)
        if password is not None:
            body += encode_string(password)
    return _packet(PacketType.CONNECT, bytes(body))


def build_publish(topic: Text, payload: Text = b"", retained: bool = False) -> bytes:
    """Return a complete QoS 0 PUBLISH packet."""
    header = PacketType.PUBLISH | (1 if retained else 0)
    return _packet(header, encode_string(topic) + _as_bytes(payload))


def build_subscribe(msg_id: int, topic: Text, qos: int = 0) -> bytes:
    """Return a SUBSCRIBE packet for one topic; only QoS 0 and 1 are accepted."""
    if not 0 <= qos <= 1:
        raise ValueError(f"unsupported subscription QoS: {qos}")
    body = _check_msg_id(msg_id) + encode_string(topic) + bytes([qos])
    return _packet(PacketType.SUBSCRIBE | QOS1, body)


def build_unsubscribe(msg_id: int, topic: Text) -> bytes:
    """Return an UNSUBSCRIBE packet for one topic."""
    body = _check_msg_id(msg_id) + encode_string(topic)
    return _packet(PacketType.UNSUBSCRIBE | QOS1, body)


def build_puback(msg_id: int) -> bytes:
    """Return the acknowledgement of a QoS 1 PUBLISH."""
    return _packet(PacketType.PUBACK, _check_msg_id(msg_id))


def parse_publish(packet: Union[bytes, bytearray], length_length: int) -> PublishMessage:
    """Split a PUBLISH packet into topic, message id and payload.

    ``length_length`` is the number of bytes of the remaining-length field.
    A message id is read only for QoS 1, as the client acknowledges only those.
    """
    data = bytes(packet)
    if not data or (data[0] & 0xF0) != PacketType.PUBLISH:
        raise ValueError("not a PUBLISH packet")
    if not 1 <= length_length <= 4:
        raise ValueError(f"invalid remaining-length size: {length_length}")
    topic_at = length_length + 1
    if len(data) < topic_at + 2:
        raise ValueError("PUBLISH packet truncated before topic length")
    topic_length = int.from_bytes(data[topic_at:topic_at + 2], "big")
    start = topic_at + 2
    end = start + topic_length
    if len(data) < end:
        raise ValueError("PUBLISH packet truncated inside topic")
    topic = data[start:end].decode("utf-8", errors="replace")

    header = data[0]
    msg_id: Optional[int] = None
    if (header & 0x06) == QOS1:
        if len(data) < end + 2:
            raise ValueError("PUBLISH packet truncated before message id")
        msg_id = int.from_bytes(data[end:end + 2], "big")
        end += 2
    return PublishMessage(
        topic=topic,
        payload=data[end:],
        msg_id=msg_id,
        qos=(header >> 1) & 0x03,
        retained=bool(header & 0x01),
    )