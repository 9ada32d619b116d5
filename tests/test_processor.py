import unittest

from richtext.cache.metadata_cache import MetadataCache
from richtext.config import CacheConfig
from richtext.extraction.entity_types import EntityKind
from richtext.links.metadata_types import FetchResult, Metadata
from richtext.pipeline.processor import Processor, process
from richtext.validation.dispatcher import IdentifierKind


SCENARIO = "Visit https://example.com and email test@example.com, call +1-555-123-4567, #ok @bob"


def _fetcher(url, timeout):
    if "broken" in url:
        return FetchResult.failure("http_404")
    return FetchResult.success(Metadata(values={"title": f"Title of {url}", "url": url}))


class TestProcessor(unittest.TestCase):
    def setUp(self):
        self.cache = MetadataCache(_fetcher, config=CacheConfig(max_attempts=1, base_delay=0.0), sleep=lambda s: None)
        self.addCleanup(self.cache.close)
        self.processor = Processor(self.cache)

    def test_entities_and_link_metadata(self):
        result = self.processor.process(SCENARIO)
        self.assertEqual(
            [e.kind for e in result.entities],
            [EntityKind.LINK, EntityKind.EMAIL, EntityKind.PHONE, EntityKind.HASHTAG, EntityKind.MENTION],
        )
        self.assertEqual(list(result.link_metadata), ["https://example.com"])
        self.assertEqual(result.link_metadata["https://example.com"].title, "Title of https://example.com")

    def test_failed_link_does_not_spoil_the_rest(self):
        result = self.processor.process("ok https://example.com/a and https://example.com/broken #tag")
        self.assertTrue(result.link_metadata["https://example.com/a"].ok)
        self.assertEqual(result.link_metadata["https://example.com/broken"].error, "http_404")
        self.assertEqual([e.raw for e in result.of_kind(EntityKind.HASHTAG)], ["tag"])

    def test_duplicate_links_fetched_once(self):
        result = self.processor.process("https://example.com/x https://example.com/x")
        self.assertEqual(result.links, ["https://example.com/x"])
        self.assertEqual(len(result.entities), 2)
        self.assertEqual(self.cache.stats().fetches, 1)

    def test_no_fetch(self):
        result = self.processor.process(SCENARIO, fetch=False)
        self.assertEqual(result.link_metadata, {})
        self.assertEqual(result.links, ["https://example.com"])

    def test_without_cache(self):
        result = process("#solo")
        self.assertEqual([e.raw for e in result.entities], ["solo"])
        self.assertEqual(result.link_metadata, {})

    def test_empty_text(self):
        result = self.processor.process("")
        self.assertEqual(result.entities, ())
        self.assertEqual(result.to_dict(), {"entities": [], "link_metadata": {}, "identifiers": []})

    def test_link_previews(self):
        result = self.processor.process("see https://example.com/broken")
        self.assertEqual(
            result.link_previews(),
            [{"url": "https://example.com/broken", "title": None, "description": None, "image": None, "error": "http_404"}],
        )

    def test_render_link_previews(self):
        result = self.processor.process("see https://example.com/a and https://example.com/broken")
        self.assertEqual(
            result.render_link_previews("text"),
            ["Title of https://example.com/a\nhttps://example.com/a", "https://example.com/broken"],
        )

    def test_to_dict(self):
        d = self.processor.process("#ok https://example.com").to_dict()
        self.assertEqual(d["entities"][0], {"kind": "hashtag", "raw": "ok", "span": [1, 3]})
        self.assertEqual(d["link_metadata"]["https://example.com"]["error"], None)


class TestIdentifierScan(unittest.TestCase):
    def test_only_valid_identifiers_in_text_order(self):
        text = (
            "ISBN 978-3-16-148410-0 (not 978-3-16-148410-1), "
            "pay GB82WEST12345698765432 from 192.168.1.1, "
            "again 978-3-16-148410-0"
        )
        result = Processor().process(text, scan_identifiers=True)
        self.assertEqual(
            [(r.kind, r.normalized) for r in result.identifiers],
            [
                (IdentifierKind.ISBN, "9783161484100"),
                (IdentifierKind.IBAN, "GB82WEST12345698765432"),
                (IdentifierKind.IPV4, "192.168.1.1"),
            ],
        )

    def test_scan_off_by_default(self):
        self.assertEqual(Processor().process("192.168.1.1").identifiers, ())

    def test_validate_passthrough(self):
        p = Processor()
        self.assertTrue(p.validate("vin", "1M8GDM9AXKP042788").valid)
        self.assertEqual([r.valid for r in p.batch_validate("ean13", ["4006381333931", "1"])], [True, False])


if __name__ == "__main__":
    unittest.main()
