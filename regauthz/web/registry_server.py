"""HTTP interface of the registry.

Routes:

    GET    /registry/entries        list all entries         (lookup-all)
    POST   /registry/entries        register an entry        (register)
    GET    /registry/entries/<id>   show one entry           (lookup-one)
    PUT    /registry/entries/<id>   register an entry at id  (register)
    DELETE /registry/entries/<id>   deregister an entry      (deregister)

The registry given to the server is expected to be the authorized one, so an
``AccessDenied`` raised by it is answered with 403 and nothing is changed.

A registration is authorized for the identifier of the entry it carries, so
its body is parsed first. A malformed body is answered with 400 whoever the
caller is, and nothing is changed either.
"""

import asyncio
import uuid
from typing import Any, Callable, Optional

import tornado.httpserver
import tornado.netutil
import tornado.web

from regauthz import config, json, regauthz_logging, web_util
from regauthz.authorization.context import security_context
from regauthz.common.exception import AccessDenied
from regauthz.registry import EntryNotFound, InvalidEntry, Registry, RegistryEntry
from regauthz.web.serving_context import ServingContext

logger = regauthz_logging.init_logging("web")

ACCESS_DENIED = "Access denied"


class RegistryHandler(tornado.web.RequestHandler):
    def initialize(self, registry: Registry, context: ServingContext) -> None:  # pylint: disable=arguments-differ
        self.registry = registry
        self.context = context

    def prepare(self) -> None:
        regauthz_logging.request_id_var.set(uuid.uuid4().hex[:8])

    def _parse_entry(self, identifier: Optional[str] = None) -> RegistryEntry:
        try:
            data = json.loads(self.request.body)
        except ValueError as e:
            raise InvalidEntry(f"Request body is not valid JSON: {e}") from e

        if identifier is not None and isinstance(data, dict):
            data.setdefault("identifier", identifier)
            if data["identifier"] != identifier:
                raise InvalidEntry("Identifier in request body does not match the request path")

        return RegistryEntry.from_dict(data)

    def _respond(self, operation: Callable[[], Any], success_code: int = 200) -> None:
        """Run ``operation`` within the caller's security context and answer with its outcome."""
        try:
            with security_context(self.context.security_context_for(self.request)):
                results = operation()
        except AccessDenied:
            # The reason is in the decorator's log, never in the response
            web_util.echo_json_response(self, 403, ACCESS_DENIED)
            return
        except EntryNotFound as e:
            web_util.echo_json_response(self, 404, str(e))
            return
        except InvalidEntry as e:
            web_util.echo_json_response(self, 400, str(e))
            return

        logger.info("%s %s: %d", self.request.method, self.request.path, success_code)
        web_util.echo_json_response(self, success_code, "Success", results)


class EntriesHandler(RegistryHandler):
    def get(self) -> None:
        self._respond(lambda: {"entries": [e.to_dict() for e in self.registry.lookup_all()]})

    def post(self) -> None:
        def register() -> Any:
            entry = self._parse_entry()
            self.registry.register(entry)
            return entry.to_dict()

        self._respond(register, 201)


class EntryHandler(RegistryHandler):
    def get(self, identifier: str) -> None:
        self._respond(lambda: self.registry.lookup(identifier).to_dict())

    def put(self, identifier: str) -> None:
        def register() -> Any:
            entry = self._parse_entry(identifier)
            self.registry.register(entry)
            return entry.to_dict()

        self._respond(register)

    def delete(self, identifier: str) -> None:
        def deregister() -> Any:
            self.registry.deregister(identifier)
            return {}

        self._respond(deregister)


def make_app(registry: Registry, context: ServingContext) -> tornado.web.Application:
    handler_args = {"registry": registry, "context": context}
    return tornado.web.Application(
        [
            (r"/registry/entries/?", EntriesHandler, handler_args),
            (r"/registry/entries/(.+)", EntryHandler, handler_args),
        ]
    )


class RegistryServer:
    """Serves a registry over HTTP on the address configured for ``component``."""

    def __init__(
        self,
        registry: Registry,
        context: ServingContext,
        component: str = "registry",
        host: Optional[str] = None,
        port: Optional[int] = None,
    ) -> None:
        self.host = host or config.get(component, "ip", fallback="127.0.0.1")
        self.port = port or config.getint(component, "port", fallback=8020)
        self.app = make_app(registry, context)

    async def serve(self) -> None:
        sockets = tornado.netutil.bind_sockets(self.port, address=self.host)
        server = tornado.httpserver.HTTPServer(self.app)
        server.add_sockets(sockets)
        logger.info("Registry listening on %s:%d", self.host, self.port)
        await asyncio.Event().wait()

    def start(self) -> None:
        asyncio.run(self.serve())
