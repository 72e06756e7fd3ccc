"""
Signal Service for distributing inbound samples and decoding signal words.

This service is the display core's view of the simulator event bus:

- Named channels receive raw numeric samples through publish()
- Subscribers of a channel are called synchronously, in subscription order,
  before publish() returns
- The latest value of every channel is cached with its timestamp
- snapshot() hands components an immutable read-only view of all channels,
  replacing ad hoc global reads
- Signal words that fail to decode are contained here and replaced by a
  NoComputedData word, so a bad sample renders as "no data" instead of
  propagating. Each channel's decoded word is cached until the next sample
  arrives, so a bad sample is logged and counted once however many frames
  read it
- Text channels (the navaid ident) keep their value as a string
"""
import logging
import math
import time
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from pfd.constants import TEXT_CHANNELS
from pfd.exceptions import InvalidQualityLane
from pfd.models.signal_word import SignalWord, SignStatusMatrix, word_to_bits

logger = logging.getLogger(__name__)

Callback = Callable[[Any], None]


def _same_value(old: float, new: float) -> bool:
    if old == new:
        return True
    try:
        return math.isnan(old) and math.isnan(new)
    except TypeError:
        return False


class Subscription:
    """Handle returned by SignalService.subscribe()."""

    def __init__(self, service: 'SignalService', name: str, callback: Callback, when_changed: bool):
        self.service = service
        self.name = name
        self.callback = callback
        self.when_changed = when_changed
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        """Stop receiving samples. Calling it again is a no-op."""
        if not self._active:
            return
        self._active = False
        self.service._remove(self)


class SignalSnapshot(Mapping):
    """Immutable view of every channel's latest raw value.

    Attributes:
        time: Virtual time at which the snapshot was taken
    """

    def __init__(self, values: Dict[str, float], decoder: Callable[[str, float], SignalWord],
                 time: float = 0.0):
        self._values = MappingProxyType(dict(values))
        self._decoder = decoder
        self.time = time

    def __getitem__(self, name: str) -> float:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def value(self, name: str, default: float = 0.0) -> float:
        """Raw numeric value of a plain channel."""
        return self._values.get(name, default)

    def word(self, name: str) -> SignalWord:
        """Decoded signal word of an encoded channel (absent channels read as 0)."""
        return self._decoder(name, self._values.get(name, 0.0))


class SignalService:
    """Service for distributing samples and caching signal values.

    Attributes:
        decode_failures: Number of words replaced because they failed to decode
        _signal_values: Cache of latest values, name -> (timestamp, value)
        _subscribers: name -> subscriptions in subscription order
        _decoded: Decoded words, name -> (raw bit pattern, word)
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        """Initialize the signal service.

        Args:
            clock: Time source used to stamp samples without a timestamp
                   (defaults to time.time)
        """
        self._clock = clock or time.time
        self._signal_values: Dict[str, Tuple[float, float]] = {}
        self._subscribers: Dict[str, List[Subscription]] = {}
        self._decoded: Dict[str, Tuple[int, SignalWord]] = {}
        self.decode_failures = 0

    def subscribe(self, name: str, callback: Callback, when_changed: bool = True) -> Subscription:
        """Subscribe to a channel.

        Args:
            name: Channel name
            callback: Called with the new raw value
            when_changed: Only call back when the value differs from the
                          previous one

        Returns:
            Subscription handle
        """
        subscription = Subscription(self, name, callback, when_changed)
        self._subscribers.setdefault(name, []).append(subscription)
        logger.debug(f"Subscribed to {name} (when_changed={when_changed})")
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        subs = self._subscribers.get(subscription.name, [])
        if subscription in subs:
            subs.remove(subscription)

    def publish(self, name: str, value: float, timestamp: Optional[float] = None) -> None:
        """Store a sample and notify the channel's subscribers.

        Args:
            name: Channel name
            value: Raw numeric value (encoded word or plain number), or text
                   on a text channel
            timestamp: Sample time (defaults to the service clock)
        """
        value = str(value) if name in TEXT_CHANNELS else float(value)
        # every inbound sample is decoded afresh, even a repeated one
        self._decoded.pop(name, None)
        previous = self._signal_values.get(name)
        changed = previous is None or not _same_value(previous[1], value)
        ts = timestamp if timestamp is not None else self._clock()
        self._signal_values[name] = (ts, value)
        for subscription in list(self._subscribers.get(name, [])):
            if not subscription.active:
                continue
            if subscription.when_changed and not changed:
                continue
            subscription.callback(value)

    def get(self, name: str, default: float = 0.0) -> float:
        """Return the latest raw value of a channel."""
        entry = self._signal_values.get(name)
        return entry[1] if entry is not None else default

    def get_latest_signal(self, name: str) -> Tuple[Optional[float], Optional[float]]:
        """Get latest (timestamp, value) for a channel, or (None, None)."""
        return self._signal_values.get(name, (None, None))

    def decode_value(self, name: str, raw: float) -> SignalWord:
        """Decode a raw value, replacing undecodable words by NoComputedData.

        The result is cached per channel until the next sample on that
        channel, so a failure is logged and counted once per sample.
        """
        bits = word_to_bits(raw)
        cached = self._decoded.get(name)
        if cached is not None and cached[0] == bits:
            return cached[1]
        try:
            word = SignalWord.decode(raw)
        except InvalidQualityLane as e:
            self.decode_failures += 1
            e.signal_name = name
            logger.warning(f"Failed to decode {name}: {e}")
            word = SignalWord(0.0, SignStatusMatrix.NO_COMPUTED_DATA)
        self._decoded[name] = (bits, word)
        return word

    def decode_word(self, name: str) -> SignalWord:
        """Decode the current value of an encoded channel."""
        return self.decode_value(name, self.get(name))

    def snapshot(self, at: float = 0.0) -> SignalSnapshot:
        """Return an immutable view of all current values."""
        return SignalSnapshot({k: v for k, (_, v) in self._signal_values.items()},
                              self.decode_value, time=at)

    def clear_cache(self) -> None:
        self._signal_values.clear()
        self._decoded.clear()
        logger.debug("Cleared signal value cache")

    def get_all(self) -> Dict[str, Any]:
        return {k: v for k, (_, v) in self._signal_values.items()}
