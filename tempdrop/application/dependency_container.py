"""
Dependency Injection Container

Manages service lifecycles and dependency resolution.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class DependencyNotFoundError(Exception):
    """Raised when attempting to resolve an unregistered dependency."""
    pass


class DependencyContainer:
    """
    Dependency injection container for managing service lifecycles.

    Supports singleton (single instance) and transient (factory-created)
    registration patterns, plus shutdown hooks that release store clients in
    reverse registration order. Thread-safe for concurrent access.
    """

    def __init__(self):
        """Initialize the dependency container."""
        self._singletons: Dict[Type, Any] = {}
        self._transients: Dict[Type, Callable[[], Any]] = {}
        self._overrides: Dict[Type, Any] = {}
        self._shutdown_hooks: List[Callable[[], None]] = []
        self._lock = threading.Lock()

        logger.debug("DependencyContainer initialized")

    def register_singleton(self, interface: Type[T], implementation: T) -> None:
        """
        Register a singleton service (single instance shared across all resolutions).

        Args:
            interface: The interface or class type to register
            implementation: The concrete instance to use

        Example:
            container.register_singleton(RecordRegistrar, registrar)
        """
        with self._lock:
            self._singletons[interface] = implementation
            logger.debug(f"Registered singleton: {interface.__name__}")

    def register_transient(self, interface: Type[T], factory: Callable[[], T]) -> None:
        """
        Register a transient service (new instance created on each resolution).

        Args:
            interface: The interface or class type to register
            factory: A callable that creates new instances
        """
        with self._lock:
            self._transients[interface] = factory
            logger.debug(f"Registered transient: {interface.__name__}")

    def resolve(self, interface: Type[T]) -> T:
        """
        Resolve a registered service.

        Args:
            interface: The interface or class type to resolve

        Returns:
            The resolved service instance

        Raises:
            DependencyNotFoundError: If the interface is not registered

        Example:
            reconciliation_service = container.resolve(ReconciliationService)
        """
        with self._lock:
            if interface in self._overrides:
                return self._overrides[interface]

            if interface in self._singletons:
                return self._singletons[interface]

            if interface in self._transients:
                factory = self._transients[interface]
                # Factory is called outside the lock so it can resolve other dependencies
            else:
                raise DependencyNotFoundError(
                    f"No registration found for type: {interface.__name__}"
                )

        return factory()

    def override(self, interface: Type[T], implementation: T) -> None:
        """
        Override a registered service (primarily for testing).

        Overrides take precedence over both singleton and transient registrations.
        """
        with self._lock:
            self._overrides[interface] = implementation
            logger.debug(f"Overridden: {interface.__name__}")

    def clear_overrides(self) -> None:
        """Clear all overrides."""
        with self._lock:
            self._overrides.clear()
            logger.debug("Cleared all overrides")

    def is_registered(self, interface: Type) -> bool:
        """
        Check if an interface is registered.

        Returns:
            True if registered (singleton, transient, or override)
        """
        with self._lock:
            return (
                interface in self._singletons or
                interface in self._transients or
                interface in self._overrides
            )

    def get_registration_type(self, interface: Type) -> str:
        """
        Get the registration type for an interface.

        Returns:
            'singleton', 'transient', 'override', or 'not_registered'
        """
        with self._lock:
            if interface in self._overrides:
                return 'override'
            if interface in self._singletons:
                return 'singleton'
            if interface in self._transients:
                return 'transient'
            return 'not_registered'

    def register_shutdown_hook(self, hook: Callable[[], None]) -> None:
        """
        Register a callable that releases a resource at shutdown.

        Args:
            hook: Zero-argument callable, e.g. a connection pool's close()
        """
        with self._lock:
            self._shutdown_hooks.append(hook)

    def shutdown(self) -> None:
        """
        Run shutdown hooks in reverse registration order.

        A failing hook is logged and does not prevent the others from running.
        Hooks run at most once.
        """
        with self._lock:
            hooks = list(reversed(self._shutdown_hooks))
            self._shutdown_hooks.clear()

        for hook in hooks:
            try:
                hook()
            except Exception as e:
                logger.error(f"Shutdown hook {getattr(hook, '__name__', hook)} failed: {e}", exc_info=True)
