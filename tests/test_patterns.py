import re
import unittest

from richtext.errors import ConfigurationError
from richtext.extraction.entity_types import EntityKind
from richtext.extraction.extractor import extract
from richtext.extraction.patterns import Matcher, build_default_library, default_library


class TestPatternLibrary(unittest.TestCase):
    def test_default_library_is_shared_and_frozen_after_use(self):
        lib = default_library()
        self.assertIs(lib, default_library())
        list(extract("#tag", library=lib))
        self.assertTrue(lib.frozen)

    def test_register_extra_matcher_before_first_use(self):
        lib = build_default_library()
        lib.register(Matcher(name="ftp_link", kind=EntityKind.LINK, pattern=r"ftp://\S+"))
        found = extract("get ftp://files.example.org/a.txt now", library=lib).to_list()
        self.assertEqual([(e.kind, e.raw) for e in found], [(EntityKind.LINK, "ftp://files.example.org/a.txt")])

    def test_registration_after_freeze_fails(self):
        lib = build_default_library()
        lib.scanner()
        self.assertTrue(lib.frozen)
        with self.assertRaises(ConfigurationError):
            lib.register(Matcher(name="late", kind=EntityKind.LINK, pattern=r"late"))
        with self.assertRaises(ConfigurationError):
            lib.register_helper("late_helper", r"x")

    def test_rejects_bad_matchers(self):
        lib = build_default_library()
        with self.assertRaises(ConfigurationError):
            lib.register(Matcher(name="link", kind=EntityKind.LINK, pattern=r"dup"))
        with self.assertRaises(ConfigurationError):
            lib.register(Matcher(name="named", kind=EntityKind.LINK, pattern=r"(?P<x>a)"))
        with self.assertRaises(ConfigurationError):
            lib.register(Matcher(name="empty", kind=EntityKind.LINK, pattern=r"a*"))
        with self.assertRaises(ConfigurationError):
            lib.register(Matcher(name="broken", kind=EntityKind.LINK, pattern=r"("))
        with self.assertRaises(ConfigurationError):
            lib.register(Matcher(name="bad name", kind=EntityKind.LINK, pattern=r"b"))

    def test_case_insensitive_matcher_stays_scoped(self):
        lib = build_default_library()
        lib.register(Matcher(name="shout", kind=EntityKind.HASHTAG, pattern=r"!!loud!!", flags=re.IGNORECASE))
        text = "!!LOUD!! HTTPS://EXAMPLE.COM"
        kinds = [(e.kind, e.raw) for e in extract(text, library=lib)]
        self.assertEqual(kinds, [(EntityKind.HASHTAG, "!!LOUD!!"), (EntityKind.LINK, "HTTPS://EXAMPLE.COM")])

    def test_unknown_lookups(self):
        lib = build_default_library()
        with self.assertRaises(ConfigurationError):
            lib.format("nope")
        with self.assertRaises(ConfigurationError):
            lib.helper("nope")
        self.assertFalse(lib.has_helper("nope"))
        self.assertTrue(lib.has_helper("candidate_isbn"))

    def test_matches_format(self):
        lib = default_library()
        self.assertTrue(lib.matches_format("uuid", "123e4567-e89b-12d3-a456-426614174000"))
        self.assertFalse(lib.matches_format("uuid", None))

    def test_empty_library_matches_nothing(self):
        from richtext.extraction.patterns import PatternLibrary

        self.assertEqual(extract("anything @at #all", library=PatternLibrary()).to_list(), [])


if __name__ == "__main__":
    unittest.main()
