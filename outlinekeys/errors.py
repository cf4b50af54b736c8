from enum import IntEnum
from typing import Dict, Optional, Type


class OutlineError(Exception):
    pass


class InvalidAccessKey(OutlineError):
    """Raised when an access key (or a config being serialized) is malformed."""

    DEFAULT_MESSAGE = "failed to parse access key"

    def __init__(self, message: str = ""):
        super().__init__(message or self.DEFAULT_MESSAGE)


class ServerError(OutlineError):
    """Base class for failures surfaced by server connect/disconnect."""


class SessionConfigFetchFailed(ServerError):
    """The remote descriptor of a dynamic server could not be fetched or decoded."""


class ErrorCode(IntEnum):
    # Codes reported by the native tunnel plugins.
    NO_ERROR = 0
    UNEXPECTED = 1
    VPN_PERMISSION_NOT_GRANTED = 2
    INVALID_SERVER_CREDENTIALS = 3
    UDP_RELAY_NOT_ENABLED = 4
    SERVER_UNREACHABLE = 5
    VPN_START_FAILURE = 6
    ILLEGAL_SERVER_CONFIGURATION = 7
    SHADOWSOCKS_START_FAILURE = 8
    CONFIGURE_SYSTEM_PROXY_FAILURE = 9
    NO_ADMIN_PERMISSIONS = 10
    UNSUPPORTED_ROUTING_TABLE = 11
    SYSTEM_MISCONFIGURED = 12


class NativeError(ServerError):
    error_code: ErrorCode = ErrorCode.UNEXPECTED

    def __init__(self, message: str = ""):
        super().__init__(message or self.error_code.name.lower().replace("_", " "))


class RegularNativeError(NativeError):
    error_code = ErrorCode.UNEXPECTED


class VpnPermissionNotGranted(NativeError):
    error_code = ErrorCode.VPN_PERMISSION_NOT_GRANTED


class InvalidServerCredentials(NativeError):
    error_code = ErrorCode.INVALID_SERVER_CREDENTIALS


class RemoteUdpForwardingDisabled(NativeError):
    error_code = ErrorCode.UDP_RELAY_NOT_ENABLED


class ServerUnreachable(NativeError):
    error_code = ErrorCode.SERVER_UNREACHABLE


class VpnStartFailure(NativeError):
    error_code = ErrorCode.VPN_START_FAILURE


class IllegalServerConfiguration(NativeError):
    error_code = ErrorCode.ILLEGAL_SERVER_CONFIGURATION


class ShadowsocksStartFailure(NativeError):
    error_code = ErrorCode.SHADOWSOCKS_START_FAILURE


class ConfigureSystemProxyFailure(NativeError):
    error_code = ErrorCode.CONFIGURE_SYSTEM_PROXY_FAILURE


class NoAdminPermissions(NativeError):
    error_code = ErrorCode.NO_ADMIN_PERMISSIONS


class UnsupportedRoutingTable(NativeError):
    error_code = ErrorCode.UNSUPPORTED_ROUTING_TABLE


class SystemMisconfigured(NativeError):
    error_code = ErrorCode.SYSTEM_MISCONFIGURED


_NATIVE_ERRORS: Dict[int, Type[NativeError]] = {
    cls.error_code: cls
    for cls in (
        RegularNativeError,
        VpnPermissionNotGranted,
        InvalidServerCredentials,
        RemoteUdpForwardingDisabled,
        ServerUnreachable,
        VpnStartFailure,
        IllegalServerConfiguration,
        ShadowsocksStartFailure,
        ConfigureSystemProxyFailure,
        NoAdminPermissions,
        UnsupportedRoutingTable,
        SystemMisconfigured,
    )
}


def from_error_code(error_code) -> Optional[NativeError]:
    """
    Translates a platform error code into its domain error.
    Returns None for NO_ERROR and for codes this package does not know.
    """
    try:
        cls = _NATIVE_ERRORS.get(int(error_code))
    except (TypeError, ValueError):
        return None
    return cls() if cls else None
