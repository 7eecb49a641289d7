import unittest

from regauthz.registry import EntryNotFound, InMemoryRegistry, InvalidEntry, RegistryEntry


class TestRegistryEntry(unittest.TestCase):
    def test_from_dict(self):
        entry = RegistryEntry.from_dict({"identifier": "urn:x", "descriptor": {"idShort": "x"}})
        self.assertEqual(entry, RegistryEntry("urn:x", {"idShort": "x"}))
        self.assertEqual(entry.to_dict(), {"identifier": "urn:x", "descriptor": {"idShort": "x"}})

    def test_descriptor_optional(self):
        self.assertEqual(RegistryEntry.from_dict({"identifier": "urn:x"}).descriptor, {})

    def test_invalid(self):
        for data in (
            [],
            {},
            {"identifier": ""},
            {"identifier": 1},
            {"identifier": "urn:x", "descriptor": "x"},
        ):
            self.assertRaises(InvalidEntry, RegistryEntry.from_dict, data)


class TestInMemoryRegistry(unittest.TestCase):
    def setUp(self):
        self.registry = InMemoryRegistry()

    def test_register_and_lookup(self):
        entry = RegistryEntry("urn:x")
        self.registry.register(entry)
        self.assertEqual(self.registry.lookup("urn:x"), entry)
        self.assertEqual(self.registry.lookup_all(), [entry])

    def test_register_replaces(self):
        self.registry.register(RegistryEntry("urn:x", {"v": 1}))
        self.registry.register(RegistryEntry("urn:x", {"v": 2}))
        self.assertEqual(self.registry.lookup_all(), [RegistryEntry("urn:x", {"v": 2})])

    def test_lookup_all_in_registration_order(self):
        for identifier in ("urn:b", "urn:a", "urn:c"):
            self.registry.register(RegistryEntry(identifier))
        self.assertEqual([e.identifier for e in self.registry.lookup_all()], ["urn:b", "urn:a", "urn:c"])

    def test_deregister(self):
        self.registry.register(RegistryEntry("urn:x"))
        self.registry.deregister("urn:x")
        self.assertEqual(self.registry.lookup_all(), [])

    def test_unknown_identifier(self):
        self.assertRaises(EntryNotFound, self.registry.lookup, "urn:x")
        self.assertRaises(EntryNotFound, self.registry.deregister, "urn:x")

    def test_not_found_message(self):
        with self.assertRaises(EntryNotFound) as cm:
            self.registry.lookup("urn:x")
        self.assertEqual(str(cm.exception), "No registry entry with identifier urn:x.")


if __name__ == "__main__":
    unittest.main()
