import os
import sys
import tempfile
import unittest

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from outlinekeys.access_key import (
    ShadowsocksUri,
    access_key_to_shadowsocks_config,
    access_keys_match,
    parse_access_key,
    parse_file,
    shadowsocks_config_to_access_key,
    stringify_legacy,
)
from outlinekeys.errors import InvalidAccessKey
from outlinekeys.models import ShadowsocksConfig
from outlinekeys.settings import logger

SIP002_KEY = "ss://Y2hhY2hhMjAtaWV0Zi1wb2x5MTMwNTpTZWNyZXQhUGFzcw@192.168.100.1:8888/#My%20Server"
LEGACY_KEY = "ss://Y2hhY2hhMjAtaWV0Zi1wb2x5MTMwNTpTZWNyZXQhUGFzc0AxOTIuMTY4LjEwMC4xOjg4ODg=#My%20Server"


class TestParse(unittest.TestCase):
    def test_sip002_and_legacy_decode_to_same_config(self):
        expected = ShadowsocksConfig(
            host="192.168.100.1",
            port=8888,
            method="chacha20-ietf-poly1305",
            password="Secret!Pass",
            name="My Server",
        )
        self.assertEqual(access_key_to_shadowsocks_config(SIP002_KEY), expected)
        self.assertEqual(access_key_to_shadowsocks_config(LEGACY_KEY), expected)

    def test_sip002_query_and_password_with_separators(self):
        fields = parse_access_key("ss://YWVzLTEyOC1nY206cEBzczp3b3Jk@example.com:443/?outline=1")
        self.assertEqual(fields.host, "example.com")
        self.assertEqual(fields.port, 443)
        self.assertEqual(fields.method, "aes-128-gcm")
        self.assertEqual(fields.password, "p@ss:word")
        self.assertEqual(fields.tag, "")
        self.assertEqual(fields.extra, {"outline": "1"})

    def test_sip002_percent_encoded_userinfo(self):
        fields = parse_access_key(
            "ss://2022-blake3-aes-256-gcm:YctPZ6U7xPPcU%2Bgp3u%2B0tx%2FtRizJN9K8y%2BuKlW2qjlI%3D"
            "@192.168.100.1:8888#Example3"
        )
        self.assertEqual(fields.method, "2022-blake3-aes-256-gcm")
        self.assertEqual(fields.password, "YctPZ6U7xPPcU+gp3u+0tx/tRizJN9K8y+uKlW2qjlI=")
        self.assertEqual(fields.tag, "Example3")

    def test_sip002_padded_userinfo(self):
        fields = parse_access_key("ss://YWVzLTI1Ni1nY206dGVzdA%3D%3D@1.2.3.4:8388")
        self.assertEqual((fields.method, fields.password), ("aes-256-gcm", "test"))

    def test_legacy_ipv6_host(self):
        fields = parse_access_key("ss://YWVzLTI1Ni1nY206dGVzdEBbOjoxXTo0NDM=")
        self.assertEqual(fields.host, "::1")
        self.assertEqual(fields.port, 443)

    def test_host_case_is_kept_by_both_grammars(self):
        for legacy, sip002, host in [
            ("ss://YWVzLTEyOC1nY206cHdARXhhbXBsZS5DT006ODM4OA==", "ss://YWVzLTEyOC1nY206cHc@Example.COM:8388/", "Example.COM"),
            ("ss://YWVzLTI1Ni1nY206dGVzdEBbMjAwMTpEQjg6OjFdOjQ0Mw==", "ss://YWVzLTI1Ni1nY206dGVzdA@[2001:DB8::1]:443/", "2001:DB8::1"),
        ]:
            with self.subTest(host=host):
                self.assertEqual(parse_access_key(legacy).host, host)
                self.assertEqual(parse_access_key(sip002).host, host)
                self.assertEqual(
                    access_key_to_shadowsocks_config(legacy),
                    access_key_to_shadowsocks_config(sip002),
                )

    def test_malformed_keys_raise_invalid_access_key(self):
        for key in [
            "not-a-key",
            "",
            "ss://",
            "ss://!!!@1.2.3.4:8388",
            "ss://YWVzLTI1Ni1nY206dGVzdA@1.2.3.4:99999",
            "ss://YWVzLTI1Ni1nY206dGVzdA@1.2.3.4",
            "ss://Ym9ndXMtY2lwaGVyOnB3@1.2.3.4:8388",
            "ss://YWVzLTI1Ni1nY206dGVzdA@bad*host:8388",
        ]:
            with self.subTest(key=key):
                with self.assertRaises(InvalidAccessKey):
                    parse_access_key(key)
                with self.assertRaises(InvalidAccessKey):
                    access_key_to_shadowsocks_config(key)

    def test_non_string_input_is_invalid_access_key(self):
        with self.assertRaises(InvalidAccessKey):
            access_key_to_shadowsocks_config(None)

    def test_error_carries_parser_message(self):
        with self.assertRaises(InvalidAccessKey) as cm:
            parse_access_key("not-a-key")
        self.assertIn("ss://", str(cm.exception))

    def test_error_falls_back_to_generic_message(self):
        self.assertEqual(str(InvalidAccessKey()), "failed to parse access key")


class TestSerialize(unittest.TestCase):
    def test_emits_sip002(self):
        config = access_key_to_shadowsocks_config(LEGACY_KEY)
        self.assertEqual(shadowsocks_config_to_access_key(config), SIP002_KEY)

    def test_round_trip(self):
        for key in [
            SIP002_KEY,
            LEGACY_KEY,
            "ss://YWVzLTEyOC1nY206cEBzczp3b3Jk@example.com:443/?outline=1",
            "ss://YWVzLTI1Ni1nY206dGVzdEBbOjoxXTo0NDM=",
            "ss://cmM0LW1kNTpwd0BleGFtcGxlLmNvbTo4Mzg4#caf%C3%A9%20%E2%98%95",
            "ss://YWVzLTEyOC1nY206cHdARXhhbXBsZS5DT006ODM4OA==",
            "ss://YWVzLTI1Ni1nY206dGVzdA@[2001:DB8::1]:443/#Office",
        ]:
            with self.subTest(key=key):
                config = access_key_to_shadowsocks_config(key)
                access_key = shadowsocks_config_to_access_key(config)
                self.assertTrue(access_key.startswith("ss://"))
                self.assertIn("@", access_key)
                self.assertEqual(access_key_to_shadowsocks_config(access_key), config)

    def test_ipv6_host_is_bracketed(self):
        config = ShadowsocksConfig(host="::1", port=443, method="aes-256-gcm", password="test")
        self.assertEqual(shadowsocks_config_to_access_key(config), "ss://YWVzLTI1Ni1nY206dGVzdA@[::1]:443/")

    def test_invalid_config_raises_invalid_access_key(self):
        for config in [
            ShadowsocksConfig(host="1.2.3.4", port=70000, method="aes-256-gcm", password="x"),
            ShadowsocksConfig(host="1.2.3.4", port=8388, method="nope", password="x"),
            ShadowsocksConfig(host="", port=8388, method="aes-256-gcm", password="x"),
        ]:
            with self.subTest(config=config):
                with self.assertRaises(InvalidAccessKey):
                    shadowsocks_config_to_access_key(config)

    def test_plugin_query_survives(self):
        fields = parse_access_key(
            "ss://YWVzLTI1Ni1nY206dGVzdA@1.2.3.4:8388/?plugin=obfs-local%3Bobfs%3Dhttp#x"
        )
        self.assertEqual(fields.extra, {"plugin": "obfs-local;obfs=http"})
        access_key = ShadowsocksUri.stringify_sip002(fields)
        self.assertEqual(
            access_key, "ss://YWVzLTI1Ni1nY206dGVzdA@1.2.3.4:8388/?plugin=obfs-local%3Bobfs%3Dhttp#x"
        )
        self.assertEqual(parse_access_key(access_key), fields)

    def test_legacy_stringify(self):
        fields = parse_access_key("ss://YmYtY2ZiOnRlc3RAMTkyLjE2OC4xMDAuMTo4ODg4")
        self.assertEqual(stringify_legacy(fields), "ss://YmYtY2ZiOnRlc3RAMTkyLjE2OC4xMDAuMTo4ODg4")


class TestMatch(unittest.TestCase):
    def test_reflexive_and_symmetric(self):
        self.assertTrue(access_keys_match(SIP002_KEY, SIP002_KEY))
        self.assertTrue(access_keys_match(SIP002_KEY, LEGACY_KEY))
        self.assertTrue(access_keys_match(LEGACY_KEY, SIP002_KEY))

    def test_tag_is_ignored(self):
        other = SIP002_KEY.replace("#My%20Server", "#Another")
        self.assertTrue(access_keys_match(SIP002_KEY, other))

    def test_different_password(self):
        self.assertFalse(access_keys_match(SIP002_KEY, "ss://YWVzLTI1Ni1nY206dGVzdA@192.168.100.1:8888"))

    def test_malformed_is_false_and_logged(self):
        with self.assertLogs(logger, level="DEBUG") as cm:
            self.assertFalse(access_keys_match("not-a-key", SIP002_KEY))
            self.assertFalse(access_keys_match(SIP002_KEY, "ss://"))
        self.assertEqual(len(cm.records), 2)
        self.assertTrue(all(r.levelname == "DEBUG" for r in cm.records))


class TestParseFile(unittest.TestCase):
    def test_skips_blank_comment_and_invalid_lines(self):
        with tempfile.NamedTemporaryFile("w", suffix=".txt", delete=False, encoding="utf-8") as f:
            f.write(f"# servers\n\n{SIP002_KEY}\nss://broken\nssconf://example.com/abc\n")
        try:
            with self.assertLogs(logger, level="WARNING"):
                keys = parse_file(f.name)
        finally:
            os.remove(f.name)
        self.assertEqual(keys, [SIP002_KEY, "ssconf://example.com/abc"])


if __name__ == "__main__":
    unittest.main()
