# carbon_coach/core/errors.py
"""
Taxonomía de errores del gateway de consejos y clasificador de errores de Gemini.

Toda la detección de rate-limit vive en `classify_upstream_error`: si el formato
de error de la API cambia, solo hay que tocar este módulo.
"""
import math
import re
from typing import Optional

from google.api_core import exceptions as google_exceptions


class AdviceError(Exception):
    status_code: int = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(AdviceError):
    status_code = 400


class ConfigurationError(AdviceError):
    status_code = 503


class RateLimitError(AdviceError):
    status_code = 429

    def __init__(self, message: str = "", retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after


class UpstreamUnavailableError(AdviceError):
    """Modelo inexistente (404) o credencial rechazada (401)."""

    def __init__(self, message: str = "", status_code: int = 404):
        super().__init__(message)
        self.status_code = status_code


class ParseError(AdviceError):
    status_code = 500


class UnknownError(AdviceError):
    status_code = 500


_RETRY_IN_PATTERN = re.compile(r"retry in\s+(\d+(?:\.\d+)?)\s*s", re.IGNORECASE)
_RATE_LIMIT_PATTERN = re.compile(r"\b429\b|quota|\brate\b|rate[\s_-]?limit", re.IGNORECASE)
_NOT_FOUND_PATTERN = re.compile(r"\b404\b|models/\S+ is not found|\bmodel not found", re.IGNORECASE)
_AUTH_PATTERN = re.compile(
    r"\b401\b|\b403\b|api[\s_-]?key|permission denied|unauthenticated", re.IGNORECASE
)


def extract_retry_delay(error_text: str) -> Optional[int]:
    """Segundos de espera sugeridos por el servidor ("retry in 12.3s"), redondeados hacia arriba."""
    match = _RETRY_IN_PATTERN.search(error_text or "")
    if not match:
        return None
    return max(1, math.ceil(float(match.group(1))))


def classify_upstream_error(exc: Exception) -> AdviceError:
    """
    Traduce una excepción del cliente de Gemini a la taxonomía propia.

    Primero se usan los tipos estructurados de google.api_core; si la excepción
    no es de ese tipo, se busca en el texto del error. Lo que no encaja en
    ninguna categoría es UnknownError, que nunca se reintenta.
    """
    if isinstance(exc, AdviceError):
        return exc

    text = str(exc)
    if isinstance(exc, (google_exceptions.TooManyRequests, google_exceptions.ResourceExhausted)):
        return RateLimitError(text, retry_after=extract_retry_delay(text))
    if isinstance(exc, google_exceptions.NotFound):
        return UpstreamUnavailableError(text, status_code=404)
    if isinstance(exc, (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied)):
        return UpstreamUnavailableError(text, status_code=401)
    if isinstance(exc, google_exceptions.GoogleAPICallError) and exc.code is not None:
        # InvalidArgument, InternalServerError, ... no son reintentables
        if _AUTH_PATTERN.search(text):
            return UpstreamUnavailableError(text, status_code=401)
        return UnknownError(text)

    if _RATE_LIMIT_PATTERN.search(text):
        return RateLimitError(text, retry_after=extract_retry_delay(text))
    if _NOT_FOUND_PATTERN.search(text):
        return UpstreamUnavailableError(text, status_code=404)
    if _AUTH_PATTERN.search(text):
        return UpstreamUnavailableError(text, status_code=401)
    return UnknownError(text)
