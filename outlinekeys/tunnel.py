import abc
from enum import IntEnum
from typing import Callable, Optional

from .models import SessionConfig


class TunnelStatus(IntEnum):
    CONNECTED = 0
    DISCONNECTED = 1
    RECONNECTING = 2


class Tunnel(metaclass=abc.ABCMeta):
    """
    A VPN tunnel provided by the host platform.

    Failures raised by `start` may carry an `error_code` attribute holding one
    of the `outlinekeys.errors.ErrorCode` values.
    """

    @abc.abstractmethod
    async def start(self, config: Optional[SessionConfig]) -> None:
        ""

    @abc.abstractmethod
    async def stop(self) -> None:
        ""

    @abc.abstractmethod
    async def is_running(self) -> bool:
        ""

    @abc.abstractmethod
    def on_status_change(self, listener: Callable[[TunnelStatus], None]) -> None:
        """Registers `listener` to be called with every status the tunnel reports."""
