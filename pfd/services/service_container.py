"""
Service Container for Dependency Injection.

This module provides a centralized container for managing service instances
and their dependencies, so the display core, the backend and the replay tool
build the same object graph from one configuration.
"""
import logging
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Centralized container for managing service instances and dependencies.

    Services are either registered as instances or as factories that are
    called on first access.

    Attributes:
        _services: Dictionary mapping service names to ('instance'|'factory', value)
        _initialized: Set of service names that have been initialized
    """

    def __init__(self):
        """Initialize the service container."""
        self._services: Dict[str, Any] = {}
        self._initialized: set = set()
        logger.info("ServiceContainer initialized")

    def register(self, name: str, service: Any, lazy: bool = False) -> None:
        """Register a service with the container.

        Args:
            name: Name identifier for the service (e.g., 'pfd_service')
            service: Service instance or callable factory function
            lazy: If True, service is created lazily on first access
                  If False, service is stored as-is
        """
        if lazy and callable(service):
            self._services[name] = ('factory', service)
        else:
            self._services[name] = ('instance', service)
            self._initialized.add(name)

        logger.debug(f"Registered service: {name} (lazy={lazy})")

    def get(self, name: str) -> Optional[Any]:
        """Get a service instance by name.

        Args:
            name: Name identifier for the service

        Returns:
            Service instance or None if not found or its factory failed
        """
        if name not in self._services:
            logger.warning(f"Service not found: {name}")
            return None

        service_type, service_value = self._services[name]

        if service_type == 'factory' and name not in self._initialized:
            try:
                logger.debug(f"Lazy initializing service: {name}")
                service_value = service_value()
                self._services[name] = ('instance', service_value)
                self._initialized.add(name)
            except Exception as e:
                logger.error(f"Failed to initialize service {name}: {e}", exc_info=True)
                return None

        return service_value

    def has(self, name: str) -> bool:
        """Check if a service is registered."""
        return name in self._services

    def remove(self, name: str) -> None:
        """Remove a service from the container, shutting it down first.

        Args:
            name: Name identifier for the service
        """
        if name not in self._services:
            return
        # never run a factory just to shut it down
        if name in self._initialized:
            _, service = self._services[name]
            if service is not None and hasattr(service, 'shutdown'):
                try:
                    service.shutdown()
                except Exception as e:
                    logger.warning(f"Error shutting down service {name}: {e}", exc_info=True)

        del self._services[name]
        self._initialized.discard(name)
        logger.debug(f"Removed service: {name}")

    def clear(self) -> None:
        """Clear all services from the container and shut them down."""
        for name in list(self._services.keys()):
            self.remove(name)

        self._services.clear()
        self._initialized.clear()
        logger.info("ServiceContainer cleared")

    def initialize_services(self, config=None) -> None:
        """Create and register the core display services.

        Registers 'config', 'scheduler', 'signal_service', 'pfd_service' and
        'display_unit' (the PfdService's state machine).

        Args:
            config: ConfigManager to use (defaults loaded when None)

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        from pfd.config import ConfigManager
        from pfd.services.pfd_service import PfdService
        from pfd.services.scheduler import FrameScheduler
        from pfd.services.signal_service import SignalService

        if config is None:
            config = ConfigManager()
        config.require_valid()
        self.register('config', config)

        scheduler = FrameScheduler()
        self.register('scheduler', scheduler)

        signal_service = SignalService(clock=lambda: scheduler.now)
        self.register('signal_service', signal_service)

        pfd_service = PfdService(config, signals=signal_service, scheduler=scheduler)
        self.register('pfd_service', pfd_service)
        self.register('display_unit', pfd_service.display_unit)
        logger.info(
            f"Registered PfdService (standby={config.display_unit_settings.standby_timeout_s}s, "
            f"selftest={config.display_unit_settings.selftest_timeout_s}s)"
        )

    def get_config(self):
        """Convenience method to get the ConfigManager."""
        return self.get('config')

    def get_scheduler(self):
        """Convenience method to get the FrameScheduler."""
        return self.get('scheduler')

    def get_signal_service(self):
        """Convenience method to get SignalService."""
        return self.get('signal_service')

    def get_pfd_service(self):
        """Convenience method to get PfdService."""
        return self.get('pfd_service')

    def __repr__(self) -> str:
        """String representation of the container."""
        services = ', '.join(self._services.keys())
        return f"ServiceContainer(services=[{services}])"
