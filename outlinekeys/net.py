import abc
import asyncio
import time
from typing import Optional, Tuple

from . import settings


class Networking(metaclass=abc.ABCMeta):
    @abc.abstractmethod
    async def is_server_reachable(self, host: str, port: int) -> bool:
        ""


class TcpNetworking(Networking):
    """Reachability by opening (and immediately closing) a TCP connection."""

    def __init__(self, timeout: Optional[float] = None, bind_addr: Optional[str] = None):
        self.timeout = settings.REACHABILITY_TIMEOUT if timeout is None else timeout
        self.bind_addr = bind_addr

    async def check_tcp_connect(self, host: str, port: int) -> Tuple[bool, float, str]:
        """
        Checks if host:port accepts TCP connections.
        Returns: (is_reachable, latency_ms, error_message)
        """
        start_time = time.time()
        try:
            local_addr = (self.bind_addr, 0) if self.bind_addr else None
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port, local_addr=local_addr),
                timeout=self.timeout
            )
            latency = (time.time() - start_time) * 1000
            writer.close()
            await writer.wait_closed()
            return True, latency, ""
        except asyncio.TimeoutError:
            return False, 0, "Timeout"
        except OSError as e:
            return False, 0, str(e)

    async def is_server_reachable(self, host: str, port: int) -> bool:
        is_up, _, err = await self.check_tcp_connect(host, port)
        if not is_up:
            settings.logger.debug(f"{host}:{port} unreachable: {err}")
        return is_up
