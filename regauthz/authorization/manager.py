"""Authorization strategy selection.

The configured ``authorization_strategy`` selects one of the authorizer
variants. The selector resolves the plugins the variant needs and returns a
fully wired ``AuthorizedRegistryDecorator``. Any configuration problem raises
``ConfigurationError``; there is no fallback to an unprotected registry.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Optional

from regauthz import config
from regauthz.authorization.authenticators import (
    GrantedAuthorityAuthenticator,
    RoleAuthenticator,
    SubjectInformationProvider,
)
from regauthz.authorization.bearer import JwtBearerTokenAuthenticationConfigurationProvider
from regauthz.authorization.decorator import AuthorizedRegistryDecorator
from regauthz.authorization.plugins import PluginRegistry, default_registry, load_plugin_modules
from regauthz.authorization.providers.attribute_based import AttributeBasedAuthorizer
from regauthz.authorization.providers.authority_based import AuthorityBasedAuthorizer
from regauthz.authorization.rules import PredefinedSetRuleChecker, load_rules
from regauthz.common.exception import ConfigurationError, ConfigurationErrorKind
from regauthz.web.authentication import RequestAuthenticator

if TYPE_CHECKING:
    from regauthz.web.serving_context import ServingContext

logger = logging.getLogger(__name__)

AUTHORIZATION_STRATEGY = "authorization_strategy"
ATTRIBUTE_BASED_ROLE_AUTHENTICATOR = "attribute_based_role_authenticator"
ATTRIBUTE_BASED_SUBJECT_INFORMATION_PROVIDER = "attribute_based_subject_information_provider"
AUTHORITY_BASED_GRANTED_AUTHORITY_AUTHENTICATOR = "authority_based_granted_authority_authenticator"
AUTHORITY_BASED_SUBJECT_INFORMATION_PROVIDER = "authority_based_subject_information_provider"
JWT_BEARER_TOKEN_AUTHENTICATION_CONFIGURATION_PROVIDER = "jwt_bearer_token_authentication_configuration_provider"
PLUGIN_MODULES = "plugin_modules"
AUTHENTICATOR = "authenticator"

DEFAULT_PLUGINS = {
    ATTRIBUTE_BASED_ROLE_AUTHENTICATOR: "KeycloakRoleAuthenticator",
    ATTRIBUTE_BASED_SUBJECT_INFORMATION_PROVIDER: "JWTAuthenticationContextProvider",
    AUTHORITY_BASED_GRANTED_AUTHORITY_AUTHENTICATOR: "AuthenticationGrantedAuthorityAuthenticator",
    AUTHORITY_BASED_SUBJECT_INFORMATION_PROVIDER: "AuthenticationContextProvider",
}


class AuthorizationStrategy(Enum):
    ATTRIBUTE_BASED = "AttributeBased"
    AUTHORITY_BASED = "AuthorityBased"


def parse_strategy(value: Optional[str], component: str = "registry") -> AuthorizationStrategy:
    """Map the configured strategy name to an ``AuthorizationStrategy``.

    Raises:
        ConfigurationError: MISSING_STRATEGY if ``value`` is empty,
            UNKNOWN_STRATEGY if it names no strategy
    """
    if not value:
        raise ConfigurationError(
            ConfigurationErrorKind.MISSING_STRATEGY,
            f"no authorization strategy set, please set {AUTHORIZATION_STRATEGY} in {component}.conf",
        )

    try:
        return AuthorizationStrategy(value)
    except ValueError as e:
        options = [s.value for s in AuthorizationStrategy]
        raise ConfigurationError(
            ConfigurationErrorKind.UNKNOWN_STRATEGY,
            f"unknown authorization strategy {value} set in {component}.conf, available options: {options}",
        ) from e


class AuthorizationFeature:
    """Builds the authorization layer of the registry from configuration.

    Args:
        component: Configuration component to read the options from
        plugin_registry: Plugins available by name. When omitted, the built-in
                         plugins plus those of the configured plugin modules
        rules_path: Rule-definition file, defaults to the well-known path
    """

    def __init__(
        self,
        component: str = "registry",
        plugin_registry: Optional[PluginRegistry] = None,
        rules_path: Optional[str] = None,
    ) -> None:
        self._component = component
        self._rules_path = rules_path

        if plugin_registry is None:
            plugin_registry = default_registry()
            load_plugin_modules(plugin_registry, config.getlist(component, PLUGIN_MODULES, fallback=[]))

        self._plugins = plugin_registry

    def _plugin_name(self, option: str) -> str:
        return config.get(self._component, option, fallback=DEFAULT_PLUGINS.get(option, ""))

    def get_decorator(self) -> AuthorizedRegistryDecorator:
        strategy = parse_strategy(config.get(self._component, AUTHORIZATION_STRATEGY), self._component)

        if strategy is AuthorizationStrategy.ATTRIBUTE_BASED:
            return self._attribute_based_decorator()
        if strategy is AuthorizationStrategy.AUTHORITY_BASED:
            return self._authority_based_decorator()

        raise ConfigurationError(
            ConfigurationErrorKind.UNKNOWN_STRATEGY, f"no handler for authorization strategy {strategy.value}"
        )

    def _attribute_based_decorator(self) -> AuthorizedRegistryDecorator:
        logger.info("Using %s authorization strategy", AuthorizationStrategy.ATTRIBUTE_BASED.value)

        role_authenticator = self._plugins.resolve(
            self._plugin_name(ATTRIBUTE_BASED_ROLE_AUTHENTICATOR),
            RoleAuthenticator,
            ATTRIBUTE_BASED_ROLE_AUTHENTICATOR,
        )
        subject_information_provider = self._plugins.resolve(
            self._plugin_name(ATTRIBUTE_BASED_SUBJECT_INFORMATION_PROVIDER),
            SubjectInformationProvider,
            ATTRIBUTE_BASED_SUBJECT_INFORMATION_PROVIDER,
        )
        rule_checker = PredefinedSetRuleChecker(load_rules(self._rules_path))

        return AuthorizedRegistryDecorator(
            AttributeBasedAuthorizer(rule_checker, role_authenticator), subject_information_provider
        )

    def _authority_based_decorator(self) -> AuthorizedRegistryDecorator:
        logger.info("Using %s authorization strategy", AuthorizationStrategy.AUTHORITY_BASED.value)

        granted_authority_authenticator = self._plugins.resolve(
            self._plugin_name(AUTHORITY_BASED_GRANTED_AUTHORITY_AUTHENTICATOR),
            GrantedAuthorityAuthenticator,
            AUTHORITY_BASED_GRANTED_AUTHORITY_AUTHENTICATOR,
        )
        subject_information_provider = self._plugins.resolve(
            self._plugin_name(AUTHORITY_BASED_SUBJECT_INFORMATION_PROVIDER),
            SubjectInformationProvider,
            AUTHORITY_BASED_SUBJECT_INFORMATION_PROVIDER,
        )

        return AuthorizedRegistryDecorator(
            AuthorityBasedAuthorizer(granted_authority_authenticator), subject_information_provider
        )

    def add_to_context(self, context: "ServingContext") -> None:
        """Attach the request authenticator and bearer-token validation settings to ``context``.

        Both are optional: nothing is attached for an option that is not set.

        Raises:
            ConfigurationError: If a configured plugin cannot be resolved or the
                bearer-token provider fails to build the settings
        """
        authenticator_name = self._plugin_name(AUTHENTICATOR)
        if authenticator_name:
            context.set_authenticator(self._plugins.resolve(authenticator_name, RequestAuthenticator, AUTHENTICATOR))

        name = self._plugin_name(JWT_BEARER_TOKEN_AUTHENTICATION_CONFIGURATION_PROVIDER)
        if not name:
            return

        provider = self._plugins.resolve(
            name,
            JwtBearerTokenAuthenticationConfigurationProvider,
            JWT_BEARER_TOKEN_AUTHENTICATION_CONFIGURATION_PROVIDER,
        )

        try:
            bearer_config = provider.get(self._component)
        except Exception as e:
            msg = f"given {JWT_BEARER_TOKEN_AUTHENTICATION_CONFIGURATION_PROVIDER} -> '{name}' failed: {e}"
            logger.error(msg)
            raise ConfigurationError(ConfigurationErrorKind.CONSTRUCTION_FAILED, msg) from e

        context.set_jwt_bearer_token_authentication_configuration(bearer_config)
        logger.info("Bearer tokens are validated against issuer %s", bearer_config.issuer_uri)
