from .interface import Sample, SignalSource
from .sim import SimSource

__all__ = ["Sample", "SignalSource", "SimSource"]
