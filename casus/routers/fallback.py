"""
Catch-all for /api requests no endpoint answered — keeps them away from the
static file mount, whatever the HTTP method.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import PlainTextResponse
from starlette.routing import Route, Router


async def chat_method_not_allowed(request: Request) -> PlainTextResponse:
    """/api/chat only accepts POST."""
    return PlainTextResponse("Method not allowed", status_code=405, headers={"Allow": "POST"})


async def api_not_found(request: Request) -> PlainTextResponse:
    """Any other /api path."""
    return PlainTextResponse("Not found", status_code=404)


# Starlette routes without a method list match every method
router = Router(
    routes=[
        Route("/chat", chat_method_not_allowed, methods=None),
        Route("/{path:path}", api_not_found, methods=None),
    ]
)
