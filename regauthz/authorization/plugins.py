"""Plugin registry for the authorization layer.

Configuration names plugins (role authenticators, subject information
providers, granted-authority authenticators, bearer-token configuration
providers, request authenticators) either by a short alias such as
``KeycloakRoleAuthenticator`` or by their fully qualified name. The
``PluginRegistry`` maps those names to factory callables. It is built once
at startup and passed to the code that needs it, there is no process-wide
registry.

Deployments add their own plugins by listing modules in the ``plugin_modules``
option. Each module must define ``register_plugins(registry)``, which is
called with the registry being built.
"""

import importlib
import logging
from typing import Any, Callable, Dict, Iterable, List, Type, TypeVar

from regauthz.authorization import authenticators, bearer
from regauthz.common.exception import ConfigurationError, ConfigurationErrorKind
from regauthz.web import authentication

logger = logging.getLogger(__name__)

T = TypeVar("T")

PluginFactory = Callable[[], Any]


def qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


class PluginRegistry:
    def __init__(self) -> None:
        self._factories: Dict[str, PluginFactory] = {}
        self._aliases: Dict[str, str] = {}

    def register(self, name: str, factory: PluginFactory, aliases: Iterable[str] = ()) -> None:
        """Register ``factory`` under ``name`` and, optionally, short aliases for it."""
        self._factories[name] = factory
        for alias in aliases:
            self._aliases[alias] = name

    def register_class(self, cls: type) -> None:
        """Register a class taking no constructor arguments under its qualified name and its simple name."""
        self.register(qualified_name(cls), cls, aliases=[cls.__name__])

    def effective_name(self, name: str) -> str:
        return self._aliases.get(name, name)

    def names(self) -> List[str]:
        return sorted(set(self._factories) | set(self._aliases))

    def resolve(self, name: str, capability: Type[T], option: str) -> T:
        """Create the plugin configured as ``name`` for the option ``option``.

        Args:
            name: Configured plugin name (short alias or fully qualified name)
            capability: Interface the plugin must implement
            option: Configuration option the name was read from (for error messages)

        Raises:
            ConfigurationError: If the name is unknown (NOT_FOUND), the factory
                fails (CONSTRUCTION_FAILED) or the created object does not
                implement ``capability`` (CAPABILITY_MISMATCH)
        """
        effective_name = self.effective_name(name)
        factory = self._factories.get(effective_name)

        if factory is None:
            msg = f"given {option} -> '{effective_name}' is not a known plugin, available plugins: {self.names()}"
            logger.error(msg)
            raise ConfigurationError(ConfigurationErrorKind.NOT_FOUND, msg)

        try:
            plugin = factory()
        except Exception as e:
            msg = f"given {option} -> '{effective_name}' could not be created: {e}"
            logger.error(msg, exc_info=True)
            raise ConfigurationError(ConfigurationErrorKind.CONSTRUCTION_FAILED, msg) from e

        if not isinstance(plugin, capability):
            msg = f"given {option} -> '{effective_name}' does not implement the interface {qualified_name(capability)}"
            logger.error(msg)
            raise ConfigurationError(ConfigurationErrorKind.CAPABILITY_MISMATCH, msg)

        logger.info("Using %s %s", option, effective_name)
        return plugin


def default_registry() -> PluginRegistry:
    """Create a registry holding the built-in plugins."""
    registry = PluginRegistry()
    for cls in (
        authenticators.KeycloakRoleAuthenticator,
        authenticators.ClaimRoleAuthenticator,
        authenticators.AuthenticationGrantedAuthorityAuthenticator,
        authenticators.JWTAuthenticationContextProvider,
        authenticators.AuthenticationContextProvider,
        bearer.KeycloakJwtBearerTokenAuthenticationConfigurationProvider,
        bearer.StaticJwtBearerTokenAuthenticationConfigurationProvider,
        authentication.ProxyHeaderAuthenticator,
    ):
        registry.register_class(cls)
    return registry


def load_plugin_modules(registry: PluginRegistry, modules: Iterable[str]) -> None:
    """Import ``modules`` and let each one register its plugins with ``registry``.

    Raises:
        ConfigurationError: If a module cannot be imported or has no
            ``register_plugins`` hook (NOT_FOUND), or the hook fails
            (CONSTRUCTION_FAILED)
    """
    for module_name in modules:
        if not module_name:
            continue

        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            msg = f"plugin module '{module_name}' could not be imported: {e}"
            logger.error(msg)
            raise ConfigurationError(ConfigurationErrorKind.NOT_FOUND, msg) from e

        hook = getattr(module, "register_plugins", None)
        if not callable(hook):
            msg = f"plugin module '{module_name}' does not define register_plugins(registry)"
            logger.error(msg)
            raise ConfigurationError(ConfigurationErrorKind.NOT_FOUND, msg)

        try:
            hook(registry)
        except Exception as e:
            msg = f"plugin module '{module_name}' failed to register its plugins: {e}"
            logger.error(msg, exc_info=True)
            raise ConfigurationError(ConfigurationErrorKind.CONSTRUCTION_FAILED, msg) from e

        logger.info("Loaded plugins from %s", module_name)
