from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Iterable, Protocol


@dataclass
class Sample:
    """One inbound simulator sample: a named 64-bit channel value.

    `word` is the raw transport value; for signal word channels it packs the
    quality code and the single precision value.
    """
    name: str
    word: float
    timestamp: Optional[float] = None


class SignalSource(Protocol):
    """Interface that every simulator sample source should implement."""

    def open(self) -> None:
        ...

    def close(self) -> None:
        ...

    def send(self, sample: Sample) -> None:
        ...

    def recv(self, timeout: Optional[float] = None) -> Optional[Sample]:
        """Receive a single sample, or None on timeout."""
        ...

    def iter_recv(self) -> Iterable[Sample]:
        """Return an iterable that yields samples as they arrive."""
        ...
