import sys

from regauthz import regauthz_logging
from regauthz.authorization.manager import AuthorizationFeature
from regauthz.common.exception import ConfigurationError
from regauthz.registry import InMemoryRegistry
from regauthz.web.registry_server import RegistryServer
from regauthz.web.serving_context import ServingContext

logger = regauthz_logging.init_logging("registry")


def run() -> None:
    logger.info("Starting registry...")

    context = ServingContext()
    feature = AuthorizationFeature("registry")

    # Both steps raise ConfigurationError before any socket is bound
    decorator = feature.get_decorator()
    feature.add_to_context(context)

    registry = decorator.decorate(InMemoryRegistry())
    logger.info("Authorization enabled using %s", decorator.authorizer.get_name())

    server = RegistryServer(registry, context)
    server.start()


def main() -> None:
    try:
        run()
    except ConfigurationError as e:
        logger.error("Invalid authorization configuration (%s): %s", e.kind.value, e)
        sys.exit(1)


if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        logger.exception(e)
        sys.exit(1)
