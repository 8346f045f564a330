"""API key authentication.

When API_KEY is set in .env, every /api/ endpoint requires either:
- Header: X-API-Key: <key>
- Query param: ?api_key=<key>

The interactive docs (/docs, /openapi.json) stay public.
"""

from __future__ import annotations

import secrets

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from .config import settings


class ApiKeyMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, api_key: str | None = None) -> None:
        super().__init__(app)
        self.api_key = api_key if api_key is not None else settings.api_key

    async def dispatch(self, request: Request, call_next):
        if not self.api_key or not request.url.path.startswith("/api/"):
            return await call_next(request)

        key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if not key or not secrets.compare_digest(key, self.api_key):
            return JSONResponse(
                status_code=401,
                content={"detail": "Invalid or missing API key"},
            )

        return await call_next(request)
