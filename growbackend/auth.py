"""Bearer-token authentication and required-field checks for handlers."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from http import HTTPStatus
from typing import Any
from uuid import UUID

import jwt

from growbackend.models import NIL_UUID
from growbackend.pipeline import (
    JWT_CLAIMS,
    OBJECT,
    USER_ID,
    Handler,
    HTTPError,
    Middleware,
    Request,
    Response,
)

log = logging.getLogger(__name__)

_HMAC_ALGORITHMS = ["HS256", "HS384", "HS512"]
_SCHEME_PREFIX = "Bearer "
_EMPTY_MARKERS = ("", "null")


class AuthError(Exception):
    """Raised when a bearer token cannot be trusted or read."""


def _header(headers: Mapping[str, str], name: str) -> str:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return ""


def extract_token(headers: Mapping[str, str]) -> str | None:
    """Return the bearer token of a request, or ``None`` if it carries none.

    ``Authorization`` is preferred; the misspelt ``Authentication`` header
    is still accepted. An empty token or the text ``null`` counts as none.
    """
    authentication = _header(headers, "Authentication")
    authorization = _header(headers, "Authorization")
    if authorization:
        authentication = authorization
    candidate = authentication.replace(_SCHEME_PREFIX, str())
    if candidate in _EMPTY_MARKERS:
        return None
    return candidate


def _decode_claims(token: str, secret: str | bytes) -> dict[str, Any]:
    try:
        header = jwt.get_unverified_header(token)
    except jwt.InvalidTokenError as exc:
        raise AuthError(str(exc)) from exc
    algorithm = header.get("alg")
    if algorithm not in _HMAC_ALGORITHMS:
        raise AuthError(f"Unexpected signing method: {algorithm}")
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=_HMAC_ALGORITHMS,
            options={"verify_aud": False},
        )
    except jwt.InvalidTokenError as exc:
        raise AuthError(str(exc)) from exc


def _user_id_from_claims(claims: Mapping[str, Any]) -> UUID:
    raw = claims.get("userID")
    if not isinstance(raw, str):
        raise AuthError("token has no userID claim")
    try:
        return UUID(raw)
    except ValueError:
        return NIL_UUID


def decode_user_id(token: str, secret: str | bytes) -> UUID:
    """Verify an HMAC-signed token and return its ``userID`` claim.

    A ``userID`` that is not a valid UUID gives the nil UUID. Raises
    :class:`AuthError` for a bad signature, algorithm or expired token.
    """
    return _user_id_from_claims(_decode_claims(token, secret))


def jwt_token(secret: str | bytes) -> Middleware:
    """Middleware that reads the bearer token, if any, into the context.

    Requests without a token pass through untouched. A token that fails
    verification is answered with 401.
    """

    def middleware(handler: Handler) -> Handler:
        def wrapped(request: Request) -> Response:
            bearer = extract_token(request.headers)
            if bearer is None:
                return handler(request)
            try:
                claims = _decode_claims(bearer, secret)
                user_id = _user_id_from_claims(claims)
            except AuthError as exc:
                log.error("%s", exc)
                raise HTTPError(HTTPStatus.UNAUTHORIZED, str(exc)) from exc
            request.context[JWT_CLAIMS] = claims
            request.context[USER_ID] = user_id
            return handler(request)

        return wrapped

    return middleware


def user_id_required(handler: Handler) -> Handler:
    """Reject with 400 a request that carries no authenticated user."""

    def wrapped(request: Request) -> Response:
        if request.context.get(USER_ID) is None:
            log.error("Missing userID")
            raise HTTPError(HTTPStatus.BAD_REQUEST, "Missing userID")
        return handler(request)

    return wrapped


def object_id_required(handler: Handler) -> Handler:
    """Reject with 400 a decoded payload object that has no ``id``."""

    def wrapped(request: Request) -> Response:
        obj = request.context.get(OBJECT)
        if getattr(obj, "id", None) is None:
            log.error("Missing object's ID - %r", obj)
            raise HTTPError(HTTPStatus.BAD_REQUEST, "Missing object's ID")
        return handler(request)

    return wrapped