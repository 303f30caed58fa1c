"""Request pipeline: middleware chains and endpoint assembly.

A handler takes a :class:`Request` and returns a :class:`Response`. A
middleware takes a handler and returns a new handler. Middlewares pass
values down the chain through ``request.context`` and report failures by
raising :class:`HTTPError`.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any

log = logging.getLogger(__name__)

Handler = Callable[["Request"], "Response"]
Middleware = Callable[[Handler], Handler]
Factory = Callable[[Any], Any]

# Keys under which middlewares store values in ``Request.context``.
OBJECT = "object"
QUERY_OBJECT = "query_object"
USER_ID = "user_id"
JWT_CLAIMS = "jwt_claims"
SESSION = "session"
SELECTOR = "selector"
SELECT_RESULT = "select_result"
INSERTED_ID = "inserted_id"
UPDATED_ID = "updated_id"
CACHE_KEY = "cache_key"


class HTTPError(Exception):
    """A failure to be answered with an HTTP status and a plain-text message."""

    def __init__(self, status: int, message: str | None = None) -> None:
        self.status = int(status)
        self.message = HTTPStatus(self.status).phrase if message is None else message
        super().__init__(f"{self.status} {self.message}")


@dataclass
class Request:
    """An incoming request and the values gathered for it along the chain."""

    method: str = "GET"
    path: str = "/"
    headers: dict[str, str] = field(default_factory=dict)
    query: dict[str, list[str]] = field(default_factory=dict)
    body: bytes = b""
    params: dict[str, str] = field(default_factory=dict)
    context: dict[str, Any] = field(default_factory=dict)


@dataclass
class Response:
    """An outgoing response."""

    status: int = 200
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)


def _error_response(error: HTTPError) -> Response:
    return Response(
        status=error.status,
        body=f"{error.message}\n".encode("utf-8"),
        headers={
            "Content-Type": "text/plain; charset=utf-8",
            "X-Content-Type-Options": "nosniff",
        },
    )


def chain(middlewares: Sequence[Middleware], handler: Handler) -> Handler:
    """Wrap ``handler`` so that the first middleware runs outermost."""
    for middleware in reversed(list(middlewares)):
        handler = middleware(handler)
    return handler


@dataclass
class Endpoint:
    """A list of middlewares ending in an output handler."""

    middlewares: list[Middleware] = field(default_factory=list)
    output: Handler | None = None

    def handle(self) -> Handler:
        """Return the assembled handler; HTTP errors become error responses."""
        if self.output is None:
            raise ValueError("endpoint has no output handler")
        inner = chain(self.middlewares, self.output)

        def serve(request: Request) -> Response:
            try:
                return inner(request)
            except HTTPError as exc:
                return _error_response(exc)

        return serve


@dataclass
class DBEndpointBuilder:
    """Assembles an endpoint around one database step.

    The order is: query decoding, body decoding, ``pre`` middlewares, the
    database step, ``post`` middlewares, then the output handler.
    """

    db_fn: Middleware
    output: Handler
    param_factory: Factory | None = None
    input_factory: Factory | None = None
    pre: list[Middleware] = field(default_factory=list)
    post: list[Middleware] = field(default_factory=list)

    def endpoint(self) -> Endpoint:
        middlewares: list[Middleware] = []
        if self.param_factory is not None:
            middlewares.append(decode_query(self.param_factory))
        if self.input_factory is not None:
            middlewares.append(decode_json(self.input_factory))
        middlewares.extend(self.pre)
        middlewares.append(self.db_fn)
        middlewares.extend(self.post)
        return Endpoint(middlewares=middlewares, output=self.output)


def _parse_json_body(body: bytes) -> Any:
    if not body or not body.strip():
        raise HTTPError(HTTPStatus.BAD_REQUEST, "Request body must not be empty")
    try:
        return json.loads(body)
    except ValueError as exc:
        raise HTTPError(
            HTTPStatus.BAD_REQUEST, "Request body contains badly-formed JSON"
        ) from exc


def decode_json(factory: Factory) -> Middleware:
    """Decode the JSON body with ``factory`` and store the result under OBJECT.

    ``factory`` receives the parsed JSON value. A missing or malformed body,
    or a value the factory rejects, is answered with 400.
    """

    def middleware(handler: Handler) -> Handler:
        def wrapped(request: Request) -> Response:
            try:
                data = _parse_json_body(request.body)
                try:
                    obj = factory(data)
                except (ValueError, TypeError, KeyError) as exc:
                    raise HTTPError(
                        HTTPStatus.BAD_REQUEST, f"Request body is invalid: {exc}"
                    ) from exc
            except HTTPError as exc:
                log.error("decode_json: %s - %s", exc.message, request.path)
                raise
            request.context[OBJECT] = obj
            return handler(request)

        return wrapped

    return middleware


def decode_query(factory: Factory) -> Middleware:
    """Decode the query string with ``factory`` and store it under QUERY_OBJECT.

    ``factory`` receives the query as a mapping of names to value lists. A
    value it rejects is answered with 500.
    """

    def middleware(handler: Handler) -> Handler:
        def wrapped(request: Request) -> Response:
            query: Mapping[str, list[str]] = request.query
            try:
                obj = factory(query)
            except (ValueError, TypeError, KeyError) as exc:
                log.error("decode_query: %s for %s", exc, query)
                raise HTTPError(HTTPStatus.INTERNAL_SERVER_ERROR, str(exc)) from exc
            request.context[QUERY_OBJECT] = obj
            return handler(request)

        return wrapped

    return middleware