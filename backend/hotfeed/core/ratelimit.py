from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

# In-memory per-process limits keyed by client address.
limiter = Limiter(key_func=get_remote_address)
