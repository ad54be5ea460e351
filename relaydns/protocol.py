"""
DNS wire-format helpers.
Only the fields the forwarder needs are interpreted: the transaction id,
the question name/type of a query and the first answer TTL of a reply.
Everything else passes through as opaque bytes.
"""

import struct
from enum import IntEnum

HEADER_SIZE = 12
MAX_MESSAGE_SIZE = 512

# type (2) + class (2) after a question name
QUESTION_FIXED_SIZE = 4
# type (2) + class (2) + ttl (4) + rdlength (2) opening the answer section
ANSWER_HEADER_SIZE = 10
TTL_OFFSET = 4


class QType(IntEnum):
    A = 1
    NS = 2
    CNAME = 5
    SOA = 6
    PTR = 12
    MX = 15
    TXT = 16
    AAAA = 28
    SRV = 33
    HTTPS = 65
    ANY = 255


QTYPE_NAMES = {v: k for k, v in QType.__members__.items()}


def qtype_name(qtype: int) -> str:
    return QTYPE_NAMES.get(qtype, f"TYPE{qtype}")


def encode_name(name: str) -> bytes:
    """Encode a domain name to DNS wire format."""
    if name in ("", "."):
        return b"\x00"
    parts = name.rstrip(".").split(".")
    result = b""
    for part in parts:
        encoded = part.encode("latin-1")
        result += bytes([len(encoded)]) + encoded
    return result + b"\x00"


def parse_query(packet: bytes) -> tuple[str, int]:
    """
    Extract (name, qtype) from the first question of a raw query.

    Never raises: a label whose length runs past the end of the packet stops
    the walk and the labels read so far are returned with qtype 0. A missing
    type field also yields qtype 0. Compression pointers are not followed.
    """
    labels = []
    offset = HEADER_SIZE
    terminated = False

    while offset < len(packet):
        length = packet[offset]
        if length == 0:
            offset += 1
            terminated = True
            break
        if offset + 1 + length > len(packet):
            break
        labels.append(packet[offset + 1 : offset + 1 + length].decode("latin-1"))
        offset += 1 + length

    name = ".".join(labels)
    qtype = 0
    if terminated and offset + 2 <= len(packet):
        (qtype,) = struct.unpack("!H", packet[offset : offset + 2])
    return name, qtype


def _skip_name(data: bytes, offset: int) -> int:
    """
    Return the offset just past the name starting at `offset`, or -1 if the
    name runs off the end of the message. A compression pointer ends the name.
    """
    while offset < len(data):
        length = data[offset]
        if length == 0:
            return offset + 1
        if (length & 0xC0) == 0xC0:
            return offset + 2 if offset + 2 <= len(data) else -1
        offset += 1 + length
    return -1


def parse_ttl(reply: bytes) -> int:
    """
    Return the TTL in seconds of the first answer record in a raw reply.

    The answer record header is read where the question section ends, with
    the TTL in its bytes 4-7. Returns 0 when the reply does not extend past
    that header, including replies with no answers. Only the first answer
    is consulted.
    """
    if len(reply) < HEADER_SIZE:
        return 0

    (qdcount,) = struct.unpack("!H", reply[4:6])
    offset = HEADER_SIZE

    for _ in range(qdcount):
        offset = _skip_name(reply, offset)
        if offset < 0:
            return 0
        offset += QUESTION_FIXED_SIZE
        if offset > len(reply):
            return 0

    if offset + ANSWER_HEADER_SIZE >= len(reply):
        return 0

    (ttl,) = struct.unpack("!I", reply[offset + TTL_OFFSET : offset + TTL_OFFSET + 4])
    return ttl


def splice_transaction_id(reply: bytes, query: bytes) -> bytes:
    """Return a copy of `reply` carrying the transaction id of `query`."""
    if len(reply) < 2 or len(query) < 2:
        return bytes(reply)
    return bytes(query[:2]) + bytes(reply[2:])
