"""Rate limiting middleware."""
import time
from collections import defaultdict
from typing import Dict, Tuple

from fastapi import HTTPException, Request, status

# Rate limit storage: {limit key: {identifier: (count, reset_time)}}
rate_limit_store: Dict[str, Dict[str, Tuple[int, float]]] = defaultdict(dict)

RATE_LIMITS = {
    "/assistant": {
        "requests": 30,
        "window": 60,
    },
    "default": {
        "requests": 100,
        "window": 60,
    },
}

EXEMPT_PREFIXES = ("/docs", "/redoc", "/openapi.json", "/healthz")


def get_client_identifier(request: Request) -> str:
    """
    Get unique identifier for rate limiting.
    Uses the caller credential if available, otherwise IP address.
    """
    authorization = request.headers.get("Authorization")
    if authorization:
        return f"credential:{authorization[-8:]}"  # last 8 chars only, never the whole credential

    client_ip = request.client.host if request.client else "unknown"
    return f"ip:{client_ip}"


def get_rate_limit_config(path: str) -> Tuple[str, Dict[str, int]]:
    """Return the RATE_LIMITS key that governs the path, with its config."""
    for endpoint, config in RATE_LIMITS.items():
        if endpoint != "default" and path.startswith(endpoint):
            return endpoint, config
    return "default", RATE_LIMITS["default"]


def prune_expired(bucket: Dict[str, Tuple[int, float]], current_time: float) -> None:
    for identifier in [key for key, (_, reset_time) in bucket.items() if current_time > reset_time]:
        del bucket[identifier]


def check_rate_limit(request: Request) -> None:
    """
    Count the request against its fixed window.

    Raises:
        HTTPException: 429 if the rate limit is exceeded
    """
    identifier = get_client_identifier(request)
    limit_key, config = get_rate_limit_config(request.url.path)
    current_time = time.time()

    bucket = rate_limit_store[limit_key]
    prune_expired(bucket, current_time)
    count, reset_time = bucket.get(identifier, (0, current_time + config["window"]))

    if count >= config["requests"]:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=(
                f"Rate limit exceeded. Maximum {config['requests']} requests "
                f"per {config['window']} seconds. Try again later."
            ),
            headers={
                "X-RateLimit-Limit": str(config["requests"]),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(int(reset_time)),
            },
        )

    bucket[identifier] = (count + 1, reset_time)
