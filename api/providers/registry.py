"""
Process-wide table of provider name -> factory.

Providers register themselves when their module is imported. The api app
imports every provider module from AppConfig.ready() and then freezes the
registry, so request handling only ever reads from it.

A factory is a callable taking the Django settings object and returning a
TranscodingProvider, raising InvalidConfigError when the settings are incomplete.
"""
import logging

from .base import ProviderAlreadyRegistered, ProviderNotRegistered

logger = logging.getLogger(__name__)


class ProviderRegistry:
    def __init__(self):
        self._factories = {}
        self._frozen = False

    def register(self, name: str, factory) -> None:
        """Register `factory` under `name`. Registering a name twice is an error."""
        if self._frozen:
            raise RuntimeError(f"cannot register provider {name!r}: registry is frozen")
        if name in self._factories:
            raise ProviderAlreadyRegistered(name)
        self._factories[name] = factory
        logger.debug("Registered transcoding provider %r", name)

    def get_factory(self, name: str):
        try:
            return self._factories[name]
        except KeyError:
            raise ProviderNotRegistered(name) from None

    def names(self) -> list:
        return sorted(self._factories)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen


registry = ProviderRegistry()


def register(name: str, factory) -> None:
    registry.register(name, factory)


def get_provider_factory(name: str):
    return registry.get_factory(name)


def provider_names() -> list:
    return registry.names()
