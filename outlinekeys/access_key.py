import base64
import binascii
import ipaddress
import re
import urllib.parse
from typing import List

from .errors import InvalidAccessKey
from .models import AccessKeyFields, ShadowsocksConfig
from .settings import logger

SS_SCHEME = "ss://"
DYNAMIC_SCHEMES = ("ssconf://", "https://")

METHODS = frozenset([
    "rc4-md5",
    "aes-128-gcm", "aes-192-gcm", "aes-256-gcm",
    "aes-128-cfb", "aes-192-cfb", "aes-256-cfb",
    "aes-128-ctr", "aes-192-ctr", "aes-256-ctr",
    "camellia-128-cfb", "camellia-192-cfb", "camellia-256-cfb",
    "bf-cfb",
    "chacha20-ietf-poly1305", "xchacha20-ietf-poly1305",
    "salsa20", "chacha20", "chacha20-ietf",
    "2022-blake3-aes-128-gcm", "2022-blake3-aes-256-gcm",
    "2022-blake3-chacha20-poly1305",
])

_HOSTNAME_RE = re.compile(r"^[A-Za-z0-9]+[A-Za-z0-9_.-]*$")
_PORT_RE = re.compile(r"^[0-9]{1,5}$")
# Characters encodeURIComponent leaves untouched on top of quote()'s defaults.
_URI_COMPONENT_SAFE = "!~*'()"


class AccessKeyParseError(ValueError):
    pass


def is_dynamic_access_key(access_key: str) -> bool:
    return access_key.startswith(DYNAMIC_SCHEMES)


class ShadowsocksUri:
    """
    Grammars of the two `ss://` URI flavours.

    legacy: ss://base64(method:password@host:port)[#tag]
    SIP002: ss://userinfo@host:port[/][?query][#tag]
            userinfo = websafe-base64(method:password)
                       or percent-encoded method:password
    """

    @staticmethod
    def _validate_scheme(uri: str):
        if not uri.startswith(SS_SCHEME):
            raise AccessKeyParseError(f'URI must start with "{SS_SCHEME}"')

    @staticmethod
    def _b64decode(data: str) -> str:
        # Both alphabets occur in the wild, padding is optional.
        data = data.replace("-", "+").replace("_", "/")
        data += "=" * (-len(data) % 4)
        try:
            return base64.b64decode(data, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise AccessKeyParseError(f"Invalid base64 in access key: {e}")

    @staticmethod
    def _uri_host(host: str) -> str:
        return f"[{host}]" if ":" in host else host

    @staticmethod
    def _hash(tag: str) -> str:
        return "#" + urllib.parse.quote(tag, safe=_URI_COMPONENT_SAFE) if tag else ""

    @staticmethod
    def validate_host(host: str) -> str:
        if host.startswith("[") and host.endswith("]"):
            host = host[1:-1]
        try:
            ipaddress.ip_address(host)
            return host
        except ValueError:
            pass
        if not _HOSTNAME_RE.match(host):
            raise AccessKeyParseError(f"Invalid host: {host}")
        return host

    @staticmethod
    def validate_port(port) -> int:
        text = str(port) if port is not None else ""
        if isinstance(port, bool) or not _PORT_RE.match(text) or int(text) > 65535:
            raise AccessKeyParseError(f"Invalid port: {port}")
        return int(text)

    @staticmethod
    def validate_method(method: str) -> str:
        if method not in METHODS:
            raise AccessKeyParseError(f"Invalid method: {method}")
        return method

    @staticmethod
    def make_fields(host, port, method, password="", tag="", extra=None) -> AccessKeyFields:
        return AccessKeyFields(
            host=ShadowsocksUri.validate_host(str(host or "")),
            port=ShadowsocksUri.validate_port(port),
            method=ShadowsocksUri.validate_method(method),
            password=password or "",
            tag=tag or "",
            extra=dict(extra or {}),
        )

    @staticmethod
    def parse_legacy(uri: str) -> AccessKeyFields:
        ShadowsocksUri._validate_scheme(uri)
        body, _, tag = uri[len(SS_SCHEME):].partition("#")
        decoded = ShadowsocksUri._b64decode(body)
        userinfo, at, host_port = decoded.rpartition("@")
        if not at:
            raise AccessKeyParseError("Missing host in legacy access key")
        method, _, password = userinfo.partition(":")
        host, colon, port = host_port.rpartition(":")
        if not colon:
            raise AccessKeyParseError(f"Invalid port: {host_port}")
        return ShadowsocksUri.make_fields(
            host, port, method, password, urllib.parse.unquote(tag)
        )

    @staticmethod
    def parse_sip002(uri: str) -> AccessKeyFields:
        ShadowsocksUri._validate_scheme(uri)
        try:
            parsed = urllib.parse.urlsplit(uri)
            port = parsed.port
        except ValueError as e:
            raise AccessKeyParseError(str(e))

        # urlsplit().hostname lowercases; hosts keep their case.
        userinfo, at, host = parsed.netloc.rpartition("@")
        if port is not None or host.endswith(":"):
            host = host.rpartition(":")[0]
        if not at or not userinfo:
            raise AccessKeyParseError("Missing user info in access key")
        if ":" in userinfo:
            method, _, password = userinfo.partition(":")
            method = urllib.parse.unquote(method)
            password = urllib.parse.unquote(password)
        else:
            decoded = ShadowsocksUri._b64decode(userinfo.replace("%3D", "="))
            method, colon, password = decoded.partition(":")
            if not colon:
                raise AccessKeyParseError("Invalid user info in access key")

        extra = {
            key: value
            for key, value in urllib.parse.parse_qsl(parsed.query, keep_blank_values=True)
            if key
        }
        return ShadowsocksUri.make_fields(
            host,
            port,
            method,
            password,
            urllib.parse.unquote(parsed.fragment),
            extra,
        )

    @staticmethod
    def stringify_sip002(config: AccessKeyFields) -> str:
        userinfo = base64.urlsafe_b64encode(
            f"{config.method}:{config.password}".encode("utf-8")
        ).decode("ascii").rstrip("=")
        query = "&".join(
            f"{key}={urllib.parse.quote(value, safe=_URI_COMPONENT_SAFE)}"
            for key, value in config.extra.items()
            if key
        )
        return (
            f"{SS_SCHEME}{userinfo}@{ShadowsocksUri._uri_host(config.host)}:{config.port}/"
            f"{'?' + query if query else ''}{ShadowsocksUri._hash(config.tag)}"
        )

    @staticmethod
    def stringify_legacy(config: AccessKeyFields) -> str:
        data = (
            f"{config.method}:{config.password}@"
            f"{ShadowsocksUri._uri_host(config.host)}:{config.port}"
        )
        encoded = base64.b64encode(data.encode("utf-8")).decode("ascii")
        return f"{SS_SCHEME}{encoded}{ShadowsocksUri._hash(config.tag)}"

    @staticmethod
    def parse(uri: str) -> AccessKeyFields:
        error = None
        for parse in (ShadowsocksUri.parse_sip002, ShadowsocksUri.parse_legacy):
            try:
                return parse(uri)
            except AccessKeyParseError as e:
                error = e
        raise error


def parse_access_key(access_key: str) -> AccessKeyFields:
    try:
        return ShadowsocksUri.parse(access_key)
    except Exception as e:
        raise InvalidAccessKey(str(e)) from e


def access_key_to_shadowsocks_config(access_key: str) -> ShadowsocksConfig:
    """Parses an access key string into a ShadowsocksConfig."""
    try:
        fields = parse_access_key(access_key)
        return ShadowsocksConfig(
            host=fields.host,
            port=fields.port,
            method=fields.method,
            password=fields.password,
            name=fields.tag,
        )
    except InvalidAccessKey:
        raise
    except Exception as e:
        raise InvalidAccessKey(str(e)) from e


def shadowsocks_config_to_access_key(config: ShadowsocksConfig) -> str:
    """Encodes a proxy configuration as a canonical (SIP002) access key."""
    try:
        fields = ShadowsocksUri.make_fields(
            host=config.host,
            port=config.port,
            method=config.method,
            password=config.password,
            tag=config.name,
        )
    except Exception as e:
        raise InvalidAccessKey(str(e)) from e
    return ShadowsocksUri.stringify_sip002(fields)


def stringify_legacy(fields: AccessKeyFields) -> str:
    return ShadowsocksUri.stringify_legacy(fields)


def access_keys_match(a: str, b: str) -> bool:
    """Compares the proxying parameters of two access keys; the tag is ignored."""
    try:
        left = access_key_to_shadowsocks_config(a)
        right = access_key_to_shadowsocks_config(b)
    except InvalidAccessKey as e:
        logger.debug(f"failed to parse access key for comparison: {e}")
        return False
    return (
        left.host == right.host
        and left.port == right.port
        and left.password == right.password
        and left.method == right.method
    )


def parse_file(file_path: str) -> List[str]:
    """
    Reads one access key per line. Blank lines and `#` comments are skipped,
    and so are static keys that do not parse.
    """
    access_keys = []
    with open(file_path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if not is_dynamic_access_key(line):
                try:
                    parse_access_key(line)
                except InvalidAccessKey as e:
                    logger.warning(f"Skipping invalid access key: {line[:50]}... | {e}")
                    continue
            access_keys.append(line)
    return access_keys

