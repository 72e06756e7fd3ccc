"""
Service layer for the PFD display core.

Services:
- SignalService: Sample distribution, value caching and word decoding
- FrameScheduler: Virtual-time timers driven by the frame tick
- DisplayUnit: Power and self-test state machine
- PfdService: One display composed from the services above
- ServiceContainer: Builds and owns the services from a configuration
"""

from pfd.services.scheduler import FrameScheduler
from pfd.services.signal_service import SignalService
from pfd.services.display_unit_service import DisplayUnit, PowerState
from pfd.services.pfd_service import PfdService
from pfd.services.service_container import ServiceContainer

__all__ = ['FrameScheduler', 'SignalService', 'DisplayUnit', 'PowerState', 'PfdService', 'ServiceContainer']
