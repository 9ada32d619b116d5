import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stdout

import process_text


class TestCli(unittest.TestCase):
    def run_cli(self, *argv):
        buf = io.StringIO()
        with redirect_stdout(buf):
            code = process_text.main(list(argv))
        return code, buf.getvalue()

    def test_validate_all_valid(self):
        code, out = self.run_cli("validate", "isbn", "978-3-16-148410-0", "0-306-40615-2")
        self.assertEqual(code, 0)
        lines = [json.loads(line) for line in out.splitlines()]
        self.assertEqual([r["valid"] for r in lines], [True, True])

    def test_validate_any_invalid_exits_1(self):
        code, out = self.run_cli("validate", "iban", "GB82WEST12345698765432", "GB82WEST12345698765431")
        self.assertEqual(code, 1)
        self.assertEqual(len(out.splitlines()), 2)

    def test_unknown_kind_exits_2(self):
        code, _ = self.run_cli("validate", "barcode128", "123")
        self.assertEqual(code, 2)

    def test_process_file_without_fetch(self):
        with tempfile.NamedTemporaryFile("w", suffix=".txt", delete=False, encoding="utf-8") as f:
            f.write("Ping @bob about https://example.com/x #launch")
            path = f.name
        self.addCleanup(os.remove, path)

        code, out = self.run_cli("process", path, "--no-fetch")
        self.assertEqual(code, 0)
        payload = json.loads(out)
        self.assertEqual([e["kind"] for e in payload["entities"]], ["mention", "link", "hashtag"])
        self.assertEqual(payload["link_metadata"], {})

    def test_process_with_previews(self):
        with tempfile.NamedTemporaryFile("w", suffix=".txt", delete=False, encoding="utf-8") as f:
            f.write("read https://example.com/x")
            path = f.name
        self.addCleanup(os.remove, path)

        code, out = self.run_cli("process", path, "--no-fetch", "--previews", "text")
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out)["previews"], ["https://example.com/x"])

    def test_describe_one_kind(self):
        code, out = self.run_cli("describe", "isbn")
        self.assertEqual(code, 0)
        info = json.loads(out)
        self.assertEqual(info["kind"], "isbn")
        self.assertIn("978-3-16-148410-0", info["valid"])

    def test_describe_all_kinds(self):
        code, out = self.run_cli("describe")
        self.assertEqual(code, 0)
        self.assertEqual(len(out.splitlines()), 11)


if __name__ == "__main__":
    unittest.main()
