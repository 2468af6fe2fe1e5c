"""CORS headers, preflight handling and method gating for every route."""
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.routing import Match
from starlette.types import ASGIApp, Scope

ALLOWED_HEADERS = (
    "Content-Type,X-Amz-Date,Authorization,X-Api-Key,X-Amz-Security-Token,x-filename"
)
PREFLIGHT_MAX_AGE = "86400"

ErrorHandler = Callable[[Request, Exception], Awaitable[Response]]


def allowed_methods(app: FastAPI, scope: Scope) -> list[str]:
    """
    Return the methods served at the request's path, OPTIONS included.

    Several routes can share one path (one per method), so every route whose
    path matches contributes its methods. A literal path such as ``/users/me``
    shadows parameterized ones like ``/users/{user_id}``. Returns an empty
    list when no route serves the path.
    """
    matched = []
    for route in app.router.routes:
        if not getattr(route, "methods", None):
            continue
        match, _ = route.matches(scope)
        if match != Match.NONE:
            matched.append(route)

    literal = [route for route in matched if not getattr(route, "param_convertors", None)]
    methods: set[str] = set()
    for route in literal or matched:
        methods.update(route.methods)
    if methods:
        methods.add("OPTIONS")
    return sorted(methods)


def method_not_allowed_response(method: str, methods: list[str]) -> JSONResponse:
    """405 body listing every method served at the path."""
    return JSONResponse(
        status_code=405,
        content={
            "detail": f"Invalid request method: {method}",
            "allowed_methods": methods,
        },
        headers={"Allow": ", ".join(methods)},
    )


class CORSHeadersMiddleware(BaseHTTPMiddleware):
    """
    Answer preflight requests, reject unlisted methods and add CORS headers
    to all responses.

    ``OPTIONS`` on any served path returns 200 with an empty body, whatever
    methods the path's routes declare. ``Access-Control-Allow-Methods`` lists
    the methods of the matched path. Unhandled errors are rendered by
    ``error_handler`` here so that 500 responses carry the headers too.
    """

    def __init__(
        self,
        app: ASGIApp,
        error_handler: ErrorHandler,
        allowed_origins: str = "*",
    ) -> None:
        super().__init__(app)
        self.error_handler = error_handler
        self.allowed_origins = allowed_origins

    def cors_headers(self, methods: list[str]) -> dict[str, str]:
        """Headers attached to every response for a served path."""
        return {
            "Access-Control-Allow-Origin": self.allowed_origins,
            "Access-Control-Allow-Headers": ALLOWED_HEADERS,
            "Access-Control-Allow-Methods": ",".join(methods),
            "Access-Control-Max-Age": PREFLIGHT_MAX_AGE,
        }

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        """Short-circuit preflight and unlisted methods, decorate everything else."""
        methods = allowed_methods(request.app, request.scope)
        if request.method == "OPTIONS" and methods:
            return Response(status_code=200, headers=self.cors_headers(methods))

        if methods and request.method not in methods:
            response: Response = method_not_allowed_response(request.method, methods)
        else:
            try:
                response = await call_next(request)
            except Exception as exc:
                response = await self.error_handler(request, exc)

        if methods:
            response.headers.update(self.cors_headers(methods))
        else:
            response.headers["Access-Control-Allow-Origin"] = self.allowed_origins
        return response
