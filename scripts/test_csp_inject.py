import sys
import tempfile
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import csp_inject

NEW_TAG = '<meta http-equiv="Content-Security-Policy" content="default-src \'self\'">'


class CspInjectTests(unittest.TestCase):
    def setUp(self):
        self._temp_dir = tempfile.TemporaryDirectory()
        self.workspace = Path(self._temp_dir.name)

    def tearDown(self):
        self._temp_dir.cleanup()

    def _write_bytes(self, name: str, content: bytes) -> Path:
        path = self.workspace / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    def test_only_the_csp_tag_changes(self):
        old_tag = '<meta name="x" content="y" Content-Security-Policy-ish>'
        html = (
            "<!DOCTYPE html>\r\n<html>\r\n<head>\r\n"
            '  <meta charset="utf-8">' + old_tag + "\r\n"
            "  <title>café</title>\r\n</head>\r\n<body></body>\r\n</html>\r\n"
        )
        page = self._write_bytes("chromeapp.html", html.encode("utf-8"))

        changed = csp_inject.inject_csp(page, NEW_TAG)

        self.assertTrue(changed)
        self.assertEqual(page.read_bytes(), html.replace(old_tag, NEW_TAG).encode("utf-8"))

    def test_missing_tag_leaves_content_unchanged(self):
        html = b"<html><head><title>t</title></head></html>\n"
        page = self._write_bytes("chromebgpage.html", html)

        changed = csp_inject.inject_csp(page, NEW_TAG)

        self.assertFalse(changed)
        self.assertEqual(page.read_bytes(), html)

    def test_only_first_tag_is_replaced(self):
        first = '<meta http-equiv="Content-Security-Policy" content="a">'
        second = '<meta http-equiv="Content-Security-Policy" content="b">'
        result = csp_inject.replace_csp_tag(f"{first}\n{second}\n", NEW_TAG)
        self.assertEqual(result, f"{NEW_TAG}\n{second}\n")

    def test_replacement_is_literal(self):
        tag = csp_inject.build_csp_tag(r"script-src 'self' \1 $1")
        result = csp_inject.replace_csp_tag('<meta http-equiv="Content-Security-Policy" content="x">', tag)
        self.assertEqual(result, tag)

    def test_build_csp_tag_escapes_attribute_delimiters(self):
        self.assertEqual(
            csp_inject.build_csp_tag('default-src "self" & more'),
            '<meta http-equiv="Content-Security-Policy" content="default-src &quot;self&quot; &amp; more">',
        )

    def test_inject_bootstrap_csp_patches_both_pages(self):
        asset_root = self.workspace / "www"
        original = b'<head><meta http-equiv="Content-Security-Policy" content="old"></head>'
        for page in csp_inject.bootstrap_page_paths(asset_root):
            page.parent.mkdir(parents=True, exist_ok=True)
            page.write_bytes(original)

        tag = csp_inject.inject_bootstrap_csp(asset_root, "default-src *")

        self.assertEqual(tag, '<meta http-equiv="Content-Security-Policy" content="default-src *">')
        for page in csp_inject.bootstrap_page_paths(asset_root):
            self.assertEqual(page.read_text(encoding="utf-8"), f"<head>{tag}</head>")

    def test_inject_bootstrap_csp_missing_page_raises(self):
        with self.assertRaises(FileNotFoundError):
            csp_inject.inject_bootstrap_csp(self.workspace / "www", "default-src *")


if __name__ == "__main__":
    unittest.main()
