import unittest

from richtext.links.metadata_types import Metadata
from richtext.links.previews import render_preview


FULL = Metadata(
    values={
        "title": "Fish & Chips",
        "description": "A short history",
        "image": "https://example.com/fish.png",
        "url": "https://example.com/fish",
    }
)


class TestRenderPreview(unittest.TestCase):
    def test_markdown(self):
        self.assertEqual(
            render_preview(FULL, "https://example.com/fish?ref=x", "markdown"),
            "[![](https://example.com/fish.png)](https://example.com/fish)\n"
            "**Fish & Chips**\n"
            "A short history\n"
            "[https://example.com/fish](https://example.com/fish)",
        )

    def test_text(self):
        self.assertEqual(
            render_preview(FULL, "https://example.com/fish", "text"),
            "Fish & Chips\nA short history\nhttps://example.com/fish",
        )

    def test_html_escapes_values(self):
        out = render_preview(FULL, "https://example.com/fish")
        self.assertTrue(out.startswith('<a href="https://example.com/fish" target="_blank" rel="noopener">'))
        self.assertIn('alt="Fish &amp; Chips"', out)
        self.assertIn("<strong>Fish &amp; Chips</strong></a>", out)
        self.assertTrue(out.endswith("<p>A short history</p>"))

    def test_failed_fetch_falls_back_to_link(self):
        failed = Metadata.failed("http_404")
        self.assertEqual(render_preview(failed, "https://example.com/x", "text"), "https://example.com/x")
        self.assertEqual(
            render_preview(None, "https://example.com/x", "markdown"),
            "[https://example.com/x](https://example.com/x)",
        )

    def test_unknown_format(self):
        with self.assertRaises(ValueError):
            render_preview(FULL, "https://example.com/fish", "rtf")


if __name__ == "__main__":
    unittest.main()
