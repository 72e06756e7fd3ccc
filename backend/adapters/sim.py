import queue
import threading
import time
from typing import Iterable, Optional

from .interface import Sample
from backend import metrics
from pfd.models.signal_word import SignalWord, SignStatusMatrix


class SimSource:
    """A simple in-memory simulated sample source for testing.

    Usage:
      s = SimSource()
      s.open()
      s.publish("altitude", 10450.0, SignStatusMatrix.NORMAL_OPERATION)
      sample = s.recv()
      s.close()
    """

    def __init__(self) -> None:
        # main queue consumed by both recv() and iter_recv()
        self._q: queue.Queue[Sample] = queue.Queue()
        # loopback queue reserved for direct recv() callers, so a background
        # reader consuming the main queue cannot steal those samples
        self._loopback_q: queue.Queue[Sample] = queue.Queue()
        self._running = False
        self._lock = threading.Lock()
        self._filters: Optional[set] = None

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running

    def open(self) -> None:
        with self._lock:
            self._running = True

    def close(self) -> None:
        with self._lock:
            self._running = False
        while True:
            try:
                self._q.get_nowait()
            except queue.Empty:
                break

    def send(self, sample: Sample) -> None:
        """Enqueue a copy of the sample to the receive queue."""
        s = Sample(name=sample.name, word=float(sample.word),
                   timestamp=sample.timestamp if sample.timestamp is not None else time.time())
        self._q.put(s)
        metrics.inc("sim_send")

    def publish(self, name: str, value: float,
                quality: Optional[SignStatusMatrix] = SignStatusMatrix.NORMAL_OPERATION) -> Sample:
        """Send a channel value, packed into a signal word unless quality is None.

        Raises:
            InvalidQualityLane: If quality is not a quality code
            SignalEncodeError: If value does not fit a single precision lane
        """
        word = float(value) if quality is None else SignalWord(value, quality).encode()
        sample = Sample(name=name, word=word, timestamp=time.time())
        self.send(sample)
        return sample

    def loopback(self, sample: Sample) -> None:
        """Make a sample available to both iter_recv() consumers and direct recv() callers."""
        self._q.put(sample)
        self._loopback_q.put(sample)
        metrics.inc("sim_loopback")

    def recv(self, timeout: Optional[float] = None) -> Optional[Sample]:
        # explicit loopback samples first so synchronous consumers see them
        # even while a background reader drains the main queue
        while True:
            try:
                s = self._loopback_q.get_nowait()
            except queue.Empty:
                break
            if self._matches_filters(s):
                metrics.inc("sim_recv")
                return s

        end = None if timeout is None else time.time() + float(timeout)
        while True:
            remaining = None if end is None else max(0.0, end - time.time())
            try:
                s = self._q.get(timeout=remaining)
            except queue.Empty:
                return None
            if self._matches_filters(s):
                metrics.inc("sim_recv")
                return s
            if end is not None and time.time() >= end:
                return None

    def iter_recv(self) -> Iterable[Sample]:
        """Yield samples until the source is closed."""
        while True:
            with self._lock:
                if not self._running and self._q.empty():
                    break
            try:
                s = self._q.get(timeout=0.5)
            except queue.Empty:
                continue
            if not self._matches_filters(s):
                continue
            metrics.inc("sim_recv")
            yield s

    def set_filters(self, names) -> None:
        """Only deliver samples for the given channel names (None delivers all)."""
        self._filters = set(names) if names is not None else None

    def _matches_filters(self, sample: Sample) -> bool:
        return self._filters is None or sample.name in self._filters
