"""Resource registry wrapped by the authorization layer.

The registry keeps descriptors of resources (for instance asset
administration shells) keyed by their identifier. Only the four operations
of the ``Registry`` interface are visible to the authorization decorator.
"""

import copy
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List

from regauthz.common.exception import RegauthzException


class EntryNotFound(RegauthzException):
    _msg_fmt = "No registry entry with identifier %(identifier)s."


class InvalidEntry(RegauthzException):
    _msg_fmt = "Invalid registry entry."


@dataclass(frozen=True)
class RegistryEntry:
    """A registered resource descriptor.

    Attributes:
        identifier: Unique identifier of the registered resource
        descriptor: Free-form descriptor data (endpoints, short id, ...)
    """

    identifier: str
    descriptor: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "RegistryEntry":
        if not isinstance(data, dict):
            raise InvalidEntry("Registry entry must be a JSON object")

        identifier = data.get("identifier")
        if not isinstance(identifier, str) or not identifier:
            raise InvalidEntry("Registry entry requires a non-empty 'identifier'")

        descriptor = data.get("descriptor", {})
        if not isinstance(descriptor, dict):
            raise InvalidEntry("Registry entry 'descriptor' must be a JSON object")

        return cls(identifier=identifier, descriptor=copy.deepcopy(descriptor))

    def to_dict(self) -> Dict[str, Any]:
        return {"identifier": self.identifier, "descriptor": copy.deepcopy(self.descriptor)}


class Registry(ABC):
    @abstractmethod
    def register(self, entry: RegistryEntry) -> None:
        """Add an entry, replacing any entry with the same identifier."""

    @abstractmethod
    def deregister(self, identifier: str) -> None:
        """Remove the entry with the given identifier.

        Raises:
            EntryNotFound: If no such entry is registered
        """

    @abstractmethod
    def lookup(self, identifier: str) -> RegistryEntry:
        """Return the entry with the given identifier.

        Raises:
            EntryNotFound: If no such entry is registered
        """

    @abstractmethod
    def lookup_all(self) -> List[RegistryEntry]:
        """Return all registered entries in registration order."""


class InMemoryRegistry(Registry):
    """Registry kept in process memory, safe for use from several threads."""

    def __init__(self) -> None:
        self._entries: Dict[str, RegistryEntry] = {}
        self._lock = threading.Lock()

    def register(self, entry: RegistryEntry) -> None:
        with self._lock:
            self._entries[entry.identifier] = entry

    def deregister(self, identifier: str) -> None:
        with self._lock:
            if identifier not in self._entries:
                raise EntryNotFound(identifier=identifier)
            del self._entries[identifier]

    def lookup(self, identifier: str) -> RegistryEntry:
        with self._lock:
            entry = self._entries.get(identifier)
        if entry is None:
            raise EntryNotFound(identifier=identifier)
        return entry

    def lookup_all(self) -> List[RegistryEntry]:
        with self._lock:
            return list(self._entries.values())
