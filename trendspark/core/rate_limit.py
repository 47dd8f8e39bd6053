"""
Per-client rate limiting, applied by SlowAPIMiddleware in main.py.

Every route gets the default limit; health and service info opt out with
``@limiter.exempt``.
"""

from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

from trendspark.core.config import get_settings

limiter = Limiter(key_func=get_remote_address, default_limits=[get_settings().rate_limit])
