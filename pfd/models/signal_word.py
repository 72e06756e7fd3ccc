"""
Signal word model: a tagged analog value carried on a single 64-bit channel.

The transport channel only carries IEEE-754 double precision numbers. A word
is packed by viewing those 8 bytes as two little-endian 32-bit lanes:

    bytes 0..3  low lane   unsigned integer quality code (0..3)
    bytes 4..7  high lane  IEEE-754 single precision value

Decoding is a strict bitwise interpretation. Any low lane other than the four
quality codes is rejected, including patterns with stray bits above bit 1.
"""
import enum
import logging
import struct
from dataclasses import dataclass

from pfd.constants import (
    SSM_FAILURE_WARNING, SSM_NO_COMPUTED_DATA,
    SSM_FUNCTIONAL_TEST, SSM_NORMAL_OPERATION, TEXT_CHANNELS, WORD_CHANNELS
)
from pfd.exceptions import InvalidQualityLane, SignalEncodeError

logger = logging.getLogger(__name__)

# Explicit little-endian layouts so the lane order never depends on the host
_WORD_FORMAT = '<d'
_LANES_FORMAT = '<If'
_BITS_FORMAT = '<Q'


class SignStatusMatrix(enum.IntEnum):
    """Quality tag of a signal word (the sign/status matrix code)."""
    FAILURE_WARNING = SSM_FAILURE_WARNING
    NO_COMPUTED_DATA = SSM_NO_COMPUTED_DATA
    FUNCTIONAL_TEST = SSM_FUNCTIONAL_TEST
    NORMAL_OPERATION = SSM_NORMAL_OPERATION


def _to_float32(value: float) -> float:
    """Round a Python float to the nearest single precision value."""
    try:
        return struct.unpack('<f', struct.pack('<f', value))[0]
    except (OverflowError, struct.error) as e:
        raise SignalEncodeError(
            f"Value {value!r} does not fit a single precision lane",
            value=value,
            original_error=e
        )


@dataclass(frozen=True)
class SignalWord:
    """Decoded signal word.

    Construction either yields a word with both fields set or raises; the
    value is always stored rounded to single precision so that encoding and
    decoding are exact inverses.

    Attributes:
        value: Analog quantity (single precision)
        quality: Validity tag
    """
    value: float
    quality: SignStatusMatrix = SignStatusMatrix.NORMAL_OPERATION

    def __post_init__(self):
        """Validate and normalize the word fields."""
        try:
            quality = SignStatusMatrix(int(self.quality))
        except (ValueError, TypeError):
            raise InvalidQualityLane(
                f"Invalid quality code: {self.quality!r}",
                lane=self.quality
            )
        object.__setattr__(self, 'quality', quality)
        object.__setattr__(self, 'value', _to_float32(float(self.value)))

    @classmethod
    def empty(cls) -> 'SignalWord':
        """Return the word carried by an all-zero channel."""
        return cls(0.0, SignStatusMatrix.FAILURE_WARNING)

    @classmethod
    def decode(cls, word: float) -> 'SignalWord':
        """Decode a 64-bit transport value.

        Args:
            word: Raw channel value

        Returns:
            The decoded SignalWord

        Raises:
            InvalidQualityLane: If the low lane is not exactly 0, 1, 2 or 3
        """
        lane, value = struct.unpack(_LANES_FORMAT, struct.pack(_WORD_FORMAT, float(word)))
        if lane not in SignStatusMatrix._value2member_map_:
            raise InvalidQualityLane(
                f"Invalid quality lane 0x{lane:08X} in word {word!r}",
                lane=lane,
                word=word
            )
        return cls(value, SignStatusMatrix(lane))

    @classmethod
    def from_bits(cls, bits: int) -> 'SignalWord':
        """Decode a word given as its raw 64-bit pattern."""
        return cls.decode(bits_to_word(bits))

    def encode(self) -> float:
        """Pack this word into a 64-bit transport value."""
        return struct.unpack(_WORD_FORMAT, struct.pack(_LANES_FORMAT, int(self.quality), self.value))[0]

    def to_bits(self) -> int:
        """Return the raw 64-bit pattern of the encoded word."""
        return word_to_bits(self.encode())

    def is_failure_warning(self) -> bool:
        return self.quality == SignStatusMatrix.FAILURE_WARNING

    def is_no_computed_data(self) -> bool:
        return self.quality == SignStatusMatrix.NO_COMPUTED_DATA

    def is_functional_test(self) -> bool:
        return self.quality == SignStatusMatrix.FUNCTIONAL_TEST

    def is_normal_operation(self) -> bool:
        return self.quality == SignStatusMatrix.NORMAL_OPERATION

    def value_or(self, default: float) -> float:
        """Return the value if the word is in normal operation, else default."""
        return self.value if self.is_normal_operation() else default

    def __str__(self) -> str:
        """String representation for display."""
        return f"{self.value}({self.quality.name})"


def encode(value: float, quality: SignStatusMatrix = SignStatusMatrix.NORMAL_OPERATION) -> float:
    """Encode a value and quality into a 64-bit transport value."""
    return SignalWord(value, quality).encode()


def decode(word: float) -> SignalWord:
    """Decode a 64-bit transport value into a SignalWord."""
    return SignalWord.decode(word)


def bits_to_word(bits: int) -> float:
    """Reinterpret a 64-bit unsigned pattern as a transport value."""
    return struct.unpack(_WORD_FORMAT, struct.pack(_BITS_FORMAT, bits & 0xFFFFFFFFFFFFFFFF))[0]


def word_to_bits(word: float) -> int:
    """Reinterpret a transport value as its 64-bit unsigned pattern."""
    return struct.unpack(_BITS_FORMAT, struct.pack(_WORD_FORMAT, float(word)))[0]


def parse_ssm(raw) -> SignStatusMatrix:
    """Parse a quality code given as integer or member name (e.g. 'NORMAL_OPERATION').

    Raises:
        InvalidQualityLane: If raw names no quality code
    """
    if isinstance(raw, str) and not raw.strip().isdigit():
        try:
            return SignStatusMatrix[raw.strip().upper()]
        except KeyError:
            raise InvalidQualityLane(f"Unknown quality code name: {raw!r}", lane=raw)
    try:
        return SignStatusMatrix(int(raw))
    except (ValueError, TypeError):
        raise InvalidQualityLane(f"Invalid quality code: {raw!r}", lane=raw)


def transport_value(name: str, value, ssm=None):
    """Turn a decoded channel value into what the transport would carry.

    Word channels are packed as signal words (normal operation unless ssm is
    given), text channels carry the string and plain channels pass the
    number through. An explicit ssm always packs a word.

    Raises:
        InvalidQualityLane: If ssm names no quality code
        SignalEncodeError: If value does not fit a single precision lane
        ValueError: If value is not a number
    """
    if ssm is not None:
        return SignalWord(float(value), parse_ssm(ssm)).encode()
    if name in WORD_CHANNELS:
        return SignalWord(float(value)).encode()
    if name in TEXT_CHANNELS:
        return str(value)
    return float(value)
