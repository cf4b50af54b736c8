import unittest
import sys
import os

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from outlinekeys.qr import generate_qr_ascii

ACCESS_KEY = "ss://YWVzLTI1Ni1nY206dGVzdA@1.2.3.4:8388/#qr"


class TestQRGeneration(unittest.TestCase):
    def test_qr_width_selection(self):
        """
        Double mode packs two module rows per line, so its width is the module
        count plus a 2-module border on each side (not twice the module count).
        A version 2 code (25 modules) is 29 columns wide and must be drawn in
        double mode on a 60 column terminal.
        """
        text, width, mode = generate_qr_ascii("https://example.com", console_width=60)

        if mode is None:
            self.fail(f"QR Generation failed: {text}")

        self.assertEqual(mode, "double", "Should favor double/square mode when space allows")
        self.assertEqual(width, 29)
        self.assertTrue("▀" in text or "▄" in text or "█" in text)
        self.assertEqual(len(text.splitlines()), (29 + 1) // 2)

    def test_qr_compact_fallback(self):
        # 27 columns in compact mode, too wide for double (29 > 30 - 10)
        text, width, mode = generate_qr_ascii("https://example.com", console_width=30)
        self.assertEqual(mode, "compact")
        self.assertEqual(width, 27)
        self.assertTrue(all(len(line) == 27 for line in text.splitlines()))

    def test_qr_too_narrow(self):
        text, width, mode = generate_qr_ascii("https://example.com", console_width=20)
        self.assertIsNone(mode)
        self.assertEqual(width, 0)
        self.assertIn("narrow", text)

    def test_access_key_renders(self):
        text, _, mode = generate_qr_ascii(ACCESS_KEY, console_width=120)
        self.assertEqual(mode, "double")
        self.assertTrue(text)


if __name__ == "__main__":
    unittest.main()
