"""
Server handles. `OutlineServer` lives in a private module; callers obtain
instances through `create_server`.
"""
import uuid
from typing import Optional

from yarl import URL

from ..access_key import access_key_to_shadowsocks_config, is_dynamic_access_key
from ..events import EventQueue
from ..models import ServerType
from ..net import Networking
from ..tunnel import Tunnel
from ._server import OutlineServer, SessionConfigFetcher
from .session_config import (
    fetch_session_config,
    normalize_dynamic_key,
    static_key_to_session_config,
)

__all__ = [
    "OutlineServer",
    "create_server",
    "fetch_session_config",
    "normalize_dynamic_key",
    "static_key_to_session_config",
]


def _default_name(access_key: str, server_type: ServerType) -> str:
    if server_type is ServerType.DYNAMIC_CONNECTION:
        return URL(normalize_dynamic_key(access_key)).host or ""
    config = access_key_to_shadowsocks_config(access_key)
    return config.name or f"{config.host}:{config.port}"


def create_server(
    access_key: str,
    name: Optional[str] = None,
    *,
    tunnel: Tunnel,
    net: Networking,
    event_queue: EventQueue,
    server_id: Optional[str] = None,
    fetch_session_config: SessionConfigFetcher = fetch_session_config,
) -> OutlineServer:
    """
    Builds a server handle, inferring static vs dynamic from the key scheme.
    Raises InvalidAccessKey for a malformed static key.
    """
    server_type = (
        ServerType.DYNAMIC_CONNECTION
        if is_dynamic_access_key(access_key)
        else ServerType.STATIC_CONNECTION
    )
    return OutlineServer(
        server_id or str(uuid.uuid4()),
        access_key,
        server_type,
        name if name is not None else _default_name(access_key, server_type),
        tunnel,
        net,
        event_queue,
        fetch_session_config=fetch_session_config,
    )
