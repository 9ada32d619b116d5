import json
import os
import unittest

from richtext.cache.entry import CacheEntry, decode_entry, encode_entry
from richtext.contracts.cache_record import validate_cache_record
from richtext.errors import CacheCorruptionError
from richtext.links.metadata_types import Metadata


FIXTURE = os.path.join(os.path.dirname(__file__), "fixtures", "cache_record_sample.json")


class TestCacheRecordContract(unittest.TestCase):
    def setUp(self):
        with open(FIXTURE, "r", encoding="utf-8") as f:
            self.payload = json.load(f)

    def test_sample_fixture_is_valid(self):
        errors = validate_cache_record(self.payload)
        self.assertEqual(errors, [], msg="Schema validation failed:\n" + "\n".join(errors))

    def test_encoded_entry_is_valid(self):
        entry = CacheEntry(key="rte:opengraph:https://a.example/", value=Metadata.failed("http_500"), fetched_at=5.0, ttl=60.0, failure_count=3)
        self.assertEqual(validate_cache_record(encode_entry(entry)), [])

    def test_rejects_bad_fields(self):
        bad = dict(self.payload, failure_count=256)
        self.assertTrue(validate_cache_record(bad))
        bad = dict(self.payload, ttl=0)
        self.assertTrue(validate_cache_record(bad))
        bad = dict(self.payload)
        del bad["fetched_at"]
        self.assertTrue(validate_cache_record(bad))
        bad = dict(self.payload, value={"values": {"title": 42}, "error": None})
        self.assertTrue(validate_cache_record(bad))
        self.assertTrue(validate_cache_record("not a record"))

    def test_decode_round_trip(self):
        entry = decode_entry(self.payload, self.payload["key"])
        self.assertEqual(entry.value.title, "Example Title")
        self.assertEqual(entry.expires_at, 1700000000.0 + 3600.0)
        self.assertEqual(encode_entry(entry), self.payload)

    def test_decode_rejects_foreign_key(self):
        with self.assertRaises(CacheCorruptionError) as ctx:
            decode_entry(self.payload, "rte:opengraph:https://other.example/")
        self.assertIn("belongs to", ctx.exception.reason)

    def test_decode_rejects_garbage(self):
        with self.assertRaises(CacheCorruptionError):
            decode_entry({"garbage": True}, "k")


if __name__ == "__main__":
    unittest.main()
