import os

from slowapi import Limiter
from slowapi.util import get_remote_address

SCAN_RATE_LIMIT = os.getenv("RECEIPT_SCAN_RATE_LIMIT", "20/minute")

limiter = Limiter(
    key_func=get_remote_address,
    enabled=os.getenv("RATELIMIT_ENABLED", "1") not in ("0", "false", "False"),
)
