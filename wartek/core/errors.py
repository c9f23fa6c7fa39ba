"""
Error taxonomy shared by routes, models and services.

Routes and model validators raise these close to the failing check; the
handlers registered in ``wartek.main`` turn them into ``{"message": ...}``
responses with the matching status code.
"""
from __future__ import annotations


class WarTekError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(WarTekError):
    status_code = 400


class Unauthorized(WarTekError):
    status_code = 401


class Forbidden(WarTekError):
    status_code = 403


class NotFound(WarTekError):
    status_code = 404


class InternalError(WarTekError):
    status_code = 500


class UpstreamServiceError(WarTekError):
    """
    A news-provider, text-generation or OAuth call failed.

    Most callers absorb this and serve fallback data instead.
    """

    status_code = 503
