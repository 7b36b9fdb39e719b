"""Time-sortable unique identifiers (TSID) for generation requests."""

import secrets
import threading
from datetime import datetime, timedelta, timezone
from time import time

# Crockford base32, no I, L, O or U
ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
TSID_LENGTH = 13

EPOCH = datetime(2020, 1, 1, tzinfo=timezone.utc)
EPOCH_MS = int(EPOCH.timestamp() * 1000)

RANDOM_BITS = 22
RANDOM_MASK = (1 << RANDOM_BITS) - 1
TIME_MASK = (1 << 42) - 1


class TsidGenerator:
    """Generates 64-bit TSIDs encoded as 13 Crockford base32 characters.

    The upper 42 bits hold milliseconds since 2020-01-01 UTC and the lower
    22 bits are random. Within one generator ids are strictly increasing:
    when the clock has not advanced the previous value is incremented.
    """

    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def next_value(self) -> int:
        """Return the next id as an integer."""
        millis = (int(time() * 1000) - EPOCH_MS) & TIME_MASK
        candidate = (millis << RANDOM_BITS) | secrets.randbits(RANDOM_BITS)

        with self._lock:
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return candidate

    def next_id(self) -> str:
        """Return the next id in its string form."""
        return encode(self.next_value())


def encode(value: int) -> str:
    """Encode a 64-bit value as a 13 character TSID string."""
    chars = []
    for _ in range(TSID_LENGTH):
        chars.append(ALPHABET[value & 0x1F])
        value >>= 5
    return "".join(reversed(chars))


def decode(tsid: str) -> int:
    """Decode a TSID string back to its integer value."""
    if len(tsid) != TSID_LENGTH:
        raise ValueError(f"Invalid TSID length: {tsid!r}")
    value = 0
    for char in tsid.upper():
        index = ALPHABET.find(char)
        if index < 0:
            raise ValueError(f"Invalid TSID character {char!r} in {tsid!r}")
        value = (value << 5) | index
    return value


def tsid_to_datetime(tsid: str) -> datetime:
    """Return the creation time encoded in a TSID."""
    millis = decode(tsid) >> RANDOM_BITS
    return EPOCH + timedelta(milliseconds=millis)


_generator = TsidGenerator()


def create_unique_generation_request_id() -> str:
    """Create an id for a new generation request."""
    return _generator.next_id()


def create_unique_generation_id() -> str:
    """Create an id for a new generation."""
    return _generator.next_id()
