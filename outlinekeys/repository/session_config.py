import asyncio
import json

import aiohttp

from ..access_key import access_key_to_shadowsocks_config
from ..errors import SessionConfigFetchFailed
from ..models import SessionConfig
from ..settings import logger

SSCONF_SCHEME = "ssconf://"

FETCH_HEADERS = {
    'Access-Control-Request-Headers': 'Content-Type',
    'Content-Type': 'application/json',
}

# No client-side deadline; aiohttp would otherwise cut the fetch at 300s.
FETCH_TIMEOUT = aiohttp.ClientTimeout(total=None)


def normalize_dynamic_key(access_key: str) -> str:
    """`ssconf://` is an alias of `https://` for dynamic access keys."""
    if access_key.startswith(SSCONF_SCHEME):
        return "https://" + access_key[len(SSCONF_SCHEME):]
    return access_key


def static_key_to_session_config(access_key: str) -> SessionConfig:
    config = access_key_to_shadowsocks_config(access_key)
    return SessionConfig(
        host=config.host,
        port=config.port,
        method=config.method,
        password=config.password,
    )


async def fetch_session_config(url: str) -> SessionConfig:
    """
    Downloads the JSON descriptor of a dynamic server. Every call goes to the
    network; nothing is cached.
    """
    url = normalize_dynamic_key(url)
    logger.debug(f"Fetching session config from {url}")
    try:
        async with aiohttp.ClientSession(timeout=FETCH_TIMEOUT) as session:
            async with session.get(url, headers=FETCH_HEADERS) as resp:
                resp.raise_for_status()
                data = await resp.json(content_type=None)
    except aiohttp.ClientError as e:
        raise SessionConfigFetchFailed(f"Failed to fetch session config: {e}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SessionConfigFetchFailed(f"Session config is not valid JSON: {e}") from e
    except asyncio.TimeoutError as e:
        raise SessionConfigFetchFailed("Timed out fetching session config") from e

    if not isinstance(data, dict):
        raise SessionConfigFetchFailed(
            f"Session config must be a JSON object, got {type(data).__name__}"
        )
    return SessionConfig.from_dict(data)
