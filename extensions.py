from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import os

# Shared limiter; order creation adds its own per-IP limit on top of the default
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=os.getenv("RATELIMIT_STORAGE_URL", "memory://"),
    strategy="fixed-window",
    default_limits=[os.getenv("DEFAULT_RATE_LIMIT", "300 per hour")],
    headers_enabled=True,
)
