from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import Response

if TYPE_CHECKING:
    from fastapi import FastAPI
    from starlette.datastructures import Headers

    from orgchart.config import Settings

CORS_PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}

_BODY_HEADERS = {"content-length", "content-type"}


class NoContentCORSMiddleware(CORSMiddleware):
    """CORS middleware that answers accepted preflight requests with ``204 No Content``."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers=request_headers)
        if response.status_code != 200:
            return response
        headers = {k: v for k, v in response.headers.items() if k.lower() not in _BODY_HEADERS}
        return Response(status_code=204, headers=headers)


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure application middleware."""
    app.add_middleware(
        NoContentCORSMiddleware,  # ty: ignore[invalid-argument-type]
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
