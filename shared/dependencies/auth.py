"""FastAPI dependencies guarding the API: admin key check and chat rate limiting."""

import hmac

from fastapi import HTTPException, Request

from services.security.RateLimiter import RateLimiter


async def verify_api_key(request: Request) -> None:
    """Verify the X-API-Key header against APP_API_KEY.

    Args:
        request (Request): The incoming FastAPI request.

    Raises:
        HTTPException: 503 if no admin key is configured, 401 if the key is missing or invalid.
    """
    config = request.app.state.config
    expected_key = config.get_string_val("APP_API_KEY", default="")
    if not expected_key:
        raise HTTPException(status_code=503, detail="Admin API is disabled: APP_API_KEY is not set.")
    provided_key = request.headers.get("X-API-Key") or ""
    if not hmac.compare_digest(provided_key.encode("utf-8"), expected_key.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Invalid or missing API key.")


def get_client_key(request: Request) -> str:
    """Identify the caller by IP and a prefix of its user agent."""
    host = request.client.host if request.client else "unknown"
    user_agent = (request.headers.get("user-agent") or "")[:50]
    return f"{host}-{user_agent}"


async def enforce_chat_rate_limit(request: Request) -> None:
    """Reject the request with 429 once the caller exceeded its chat quota.

    Raises:
        HTTPException: 429 with a Retry-After header.
    """
    limiter: RateLimiter = request.app.state.rate_limiter
    decision = limiter.hit(get_client_key(request))
    if not decision.allowed:
        raise HTTPException(
            status_code=429,
            detail="You're sending messages too quickly. Please wait a moment.",
            headers={"Retry-After": str(decision.retry_after)},
        )
