import unittest

from richtext.links.url_utils import cache_key, canonicalize_url


class TestUrlCanonicalization(unittest.TestCase):
    def test_canonicalize_strips_tracking_params(self):
        raw = "https://Example.com/path/to/article?utm_source=x&utm_medium=y&id=123&gclid=AAA#section"
        canon = canonicalize_url(raw)
        self.assertEqual(canon, "https://example.com/path/to/article?id=123")

    def test_equivalent_urls_canonicalize_alike(self):
        a = "https://example.com/a?utm_source=x&id=1"
        b = "https://example.com/a?id=1&utm_medium=y"
        self.assertEqual(canonicalize_url(a), canonicalize_url(b))

    def test_query_params_are_sorted(self):
        self.assertEqual(canonicalize_url("https://example.com/?b=2&a=1"), "https://example.com/?a=1&b=2")

    def test_default_port_dropped(self):
        self.assertEqual(canonicalize_url("HTTPS://Example.com:443/a"), "https://example.com/a")
        self.assertEqual(canonicalize_url("http://example.com:8080/a"), "http://example.com:8080/a")

    def test_tracking_prefixes_and_extra_params(self):
        self.assertEqual(canonicalize_url("https://example.com/a?utm_whatever=1&mc_cid=2&q=3"), "https://example.com/a?q=3")
        self.assertEqual(canonicalize_url("https://example.com/a?session=9&q=3", strip_params=["session"]), "https://example.com/a?q=3")

    def test_cache_key_uses_prefix_and_canonical_url(self):
        self.assertEqual(
            cache_key("https://Example.com/a?fbclid=zzz", "rte"),
            "rte:opengraph:https://example.com/a",
        )

    def test_malformed_url_is_kept_verbatim(self):
        self.assertEqual(canonicalize_url("http://[::1"), "http://[::1")
        self.assertEqual(canonicalize_url(""), "")


if __name__ == "__main__":
    unittest.main()
