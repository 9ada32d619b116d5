import unittest

from richtext.cache.stores import BaseCacheStore, InMemoryStore


class TestInMemoryStore(unittest.TestCase):
    def setUp(self):
        self.now = 100.0
        self.store = InMemoryStore(clock=lambda: self.now)

    def test_read_write_delete(self):
        self.store.write("k", {"a": [1]}, 10)
        self.assertEqual(self.store.read("k"), {"a": [1]})
        self.assertTrue(self.store.delete("k"))
        self.assertFalse(self.store.delete("k"))
        self.assertIsNone(self.store.read("k"))

    def test_expiry(self):
        self.store.write("k", "v", 10)
        self.now += 10
        self.assertIsNone(self.store.read("k"))
        self.assertEqual(len(self.store), 0)

    def test_no_ttl_never_expires(self):
        self.store.write("k", "v", None)
        self.now += 1e9
        self.assertEqual(self.store.read("k"), "v")

    def test_records_are_copied(self):
        record = {"values": {"title": "a"}}
        self.store.write("k", record, None)
        record["values"]["title"] = "changed"
        self.store.read("k")["values"]["title"] = "also changed"
        self.assertEqual(self.store.read("k"), {"values": {"title": "a"}})

    def test_base_store_is_abstract(self):
        with self.assertRaises(NotImplementedError):
            BaseCacheStore().read("k")


if __name__ == "__main__":
    unittest.main()
