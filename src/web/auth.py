from __future__ import annotations

import hmac

from fastapi import HTTPException, Request


def extract_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip()
    token_header = request.headers.get("X-AcadEase-Token", "").strip()
    return token_header or None


async def require_ops_auth(request: Request, expected_token: str) -> dict[str, str]:
    """Guards the ops endpoints (metrics, shutdown) with a static bearer token."""
    if not expected_token:
        raise HTTPException(status_code=503, detail="OPS_AUTH_TOKEN is not configured")

    token = extract_token(request)
    if token and hmac.compare_digest(token, expected_token):
        return {"auth": "token", "user": "ops-token"}

    raise HTTPException(status_code=401, detail="Unauthorized")
