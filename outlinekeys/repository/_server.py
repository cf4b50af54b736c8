from typing import Awaitable, Callable, Optional

from yarl import URL

from .. import errors, events
from ..models import ServerType, SessionConfig
from ..net import Networking
from ..settings import OUTLINE_SERVER_MARKER, logger
from ..tunnel import Tunnel, TunnelStatus
from .session_config import (
    fetch_session_config,
    normalize_dynamic_key,
    static_key_to_session_config,
)

SessionConfigFetcher = Callable[[str], Awaitable[SessionConfig]]

_STATUS_EVENTS = {
    TunnelStatus.CONNECTED: events.ServerConnected,
    TunnelStatus.DISCONNECTED: events.ServerDisconnected,
    TunnelStatus.RECONNECTING: events.ServerReconnecting,
}


class OutlineServer:
    # The tunnel transport only implements AEAD ciphers.
    # https://shadowsocks.org/doc/aead.html
    SUPPORTED_CIPHERS = (
        'chacha20-ietf-poly1305',
        'aes-128-gcm',
        'aes-192-gcm',
        'aes-256-gcm',
    )

    def __init__(
        self,
        id: str,
        access_key: str,
        type: ServerType,
        name: str,
        tunnel: Tunnel,
        net: Networking,
        event_queue: events.EventQueue,
        fetch_session_config: SessionConfigFetcher = fetch_session_config,
    ):
        self._id = id
        self._type = type
        self._name = name
        self._tunnel = tunnel
        self._net = net
        self._event_queue = event_queue
        self._fetch_session_config = fetch_session_config
        self._session_config: Optional[SessionConfig] = None

        if type is ServerType.DYNAMIC_CONNECTION:
            self._access_key = normalize_dynamic_key(access_key)
        else:
            self._access_key = access_key
            self._session_config = static_key_to_session_config(access_key)

        self._tunnel.on_status_change(self._on_tunnel_status_change)

    def _on_tunnel_status_change(self, status):
        event_class = _STATUS_EVENTS.get(status) if isinstance(status, TunnelStatus) else None
        if event_class is None:
            logger.warning(f"Received unknown tunnel status {status}")
            return
        self._event_queue.enqueue(event_class(self))

    @property
    def id(self) -> str:
        return self._id

    @property
    def access_key(self) -> str:
        return self._access_key

    @property
    def type(self) -> ServerType:
        return self._type

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, new_name: str):
        self._name = new_name

    @property
    def address(self) -> str:
        if not self._session_config:
            return ""
        return f"{self._session_config.host}:{self._session_config.port}"

    @property
    def session_config_location(self) -> Optional[URL]:
        if self._type is not ServerType.DYNAMIC_CONNECTION:
            return None
        return URL(self._access_key)

    @property
    def is_outline_server(self) -> bool:
        return OUTLINE_SERVER_MARKER in self._access_key

    async def connect(self):
        try:
            if self._type is ServerType.DYNAMIC_CONNECTION:
                self._session_config = None
                self._session_config = await self._fetch_session_config(self._access_key)

            await self._tunnel.start(self._session_config)
        except Exception as e:
            # The tunnel reports failures as plain exceptions tagged with a
            # platform error code.
            error_code = getattr(e, "error_code", None)
            native_error = errors.from_error_code(error_code) if error_code else None
            if native_error is not None:
                raise native_error from e
            raise

    async def disconnect(self):
        try:
            await self._tunnel.stop()
        except Exception as e:
            # Every platform reports disconnection failures as UNEXPECTED.
            logger.debug(f"Failed to stop tunnel for server {self._id}: {e!r}")
            raise errors.RegularNativeError() from None

        if self._type is ServerType.DYNAMIC_CONNECTION:
            self._session_config = None

    async def check_running(self) -> bool:
        return await self._tunnel.is_running()

    async def check_reachable(self) -> bool:
        """Only meaningful while the server is running."""
        if not self._session_config:
            return False
        return await self._net.is_server_reachable(
            self._session_config.host, self._session_config.port
        )

    @staticmethod
    def is_server_cipher_supported(cipher: Optional[str] = None) -> bool:
        return cipher is not None and cipher in OutlineServer.SUPPORTED_CIPHERS

    def __repr__(self):
        return f"OutlineServer(id={self._id!r}, type={self._type.name}, address={self.address!r})"
