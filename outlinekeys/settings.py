import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__package__)

LOG_LEVEL = os.getenv("OUTLINEKEYS_LOG_LEVEL") or "WARNING"

# Seconds to wait for a TCP handshake when probing a server.
REACHABILITY_TIMEOUT = float(os.getenv("OUTLINEKEYS_REACHABILITY_TIMEOUT") or 5)

CHECK_CONCURRENCY = int(os.getenv("OUTLINEKEYS_CHECK_CONCURRENCY") or 20)

OUTLINE_SERVER_MARKER = "outline=1"
