"""Permissive CORS for the browser front end."""

from aiohttp import web
from aiohttp.typedefs import Handler

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, Cache-Control",
}


def apply_cors_headers(response: web.StreamResponse) -> web.StreamResponse:
    """Add CORS headers unless the response has already been sent."""
    if not response.prepared:
        for name, value in CORS_HEADERS.items():
            response.headers.setdefault(name, value)
    return response


@web.middleware
async def cors_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Answer preflights directly and tag every other response."""
    if request.method == "OPTIONS":
        return web.Response(status=200, headers=CORS_HEADERS)

    try:
        response = await handler(request)
    except web.HTTPException as e:
        for name, value in CORS_HEADERS.items():
            e.headers.setdefault(name, value)
        raise
    return apply_cors_headers(response)
