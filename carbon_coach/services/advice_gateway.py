# carbon_coach/services/advice_gateway.py
"""
Gateway de consejos IA: prompt -> Gemini -> parseo, con un único reintento
ante rate-limit.

Cada llamada es independiente (sin estado entre invocaciones) y siempre
termina en un AdviceResult; ninguna excepción llega al llamador.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from carbon_coach.api.v1.schemas.advice import ChatRequest, SuggestionsRequest
from carbon_coach.core.errors import (
    AdviceError,
    ConfigurationError,
    RateLimitError,
    UpstreamUnavailableError,
    ValidationError,
    classify_upstream_error,
)
from carbon_coach.core.gemini_client import GeminiClient
from carbon_coach.services.prompts import build_chat_prompt, build_suggestions_prompt, to_gemini_history
from carbon_coach.services.response_parser import clean_reply, parse_suggestions

logger = logging.getLogger(__name__)

# Espera antes del reintento si el error no trae "retry in Ns"
FIRST_RETRY_DELAY_SECONDS = 15
# retryAfter devuelto al usuario cuando el reintento también falla
REPORTED_RETRY_DELAY_SECONDS = 30

UNCONFIGURED_REPLY = (
    "The AI assistant is not configured. Please add a GEMINI_API_KEY to the server environment."
)
UNCONFIGURED_ERROR = "Server is missing GEMINI_API_KEY configuration."
FALLBACK_SUGGESTION_TEXTS = [
    "Drive less or carpool to reduce your transportation emissions.",
    "Switch to LED lightbulbs to save energy.",
    "Incorporate more plant-based meals into your diet.",
]
MODEL_UNAVAILABLE_REPLY = "The AI coach model is currently unavailable. Please try again later. 🌱"
AUTH_FAILURE_REPLY = "The AI coach could not authenticate with its provider. Please contact the site administrator."
GENERIC_FAILURE_REPLY = "Sorry, I had trouble processing that. Please try again! 🌱"


def _raise_classified(error: AdviceError, original: Exception):
    if error is original:
        raise error
    raise error from original


def rate_limited_reply(retry_after: int) -> str:
    return (
        f"The AI coach is receiving too many requests right now. "
        f"Please try again in {retry_after} seconds. ⏳"
    )


@dataclass
class AdviceResult:
    status_code: int
    payload: dict[str, Any] = field(default_factory=dict)


class AdviceGateway:
    def __init__(
        self,
        client: Optional[GeminiClient],
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        audience: str = "an Indian audience",
    ):
        self.client = client
        self._sleep = sleep
        self.audience = audience

    @property
    def configured(self) -> bool:
        return self.client is not None

    async def _call_with_retry(self, call: Callable[[], Awaitable[str]]) -> str:
        """
        Ejecuta `call`; si falla por rate-limit espera el retraso indicado por el
        error (o FIRST_RETRY_DELAY_SECONDS) y reintenta exactamente una vez.
        Lanza siempre errores de la taxonomía (AdviceError).
        """
        try:
            return await call()
        except Exception as e:
            error = classify_upstream_error(e)
            if not isinstance(error, RateLimitError):
                _raise_classified(error, e)
            delay = error.retry_after or FIRST_RETRY_DELAY_SECONDS
            logger.warning(f"Gemini rate limit hit, retrying once in {delay}s. Error: {e}")

        await self._sleep(delay)

        try:
            return await call()
        except Exception as e:
            error = classify_upstream_error(e)
            if isinstance(error, RateLimitError):
                error.retry_after = error.retry_after or REPORTED_RETRY_DELAY_SECONDS
                logger.error(f"Gemini rate limit persisted after retry, reporting retryAfter={error.retry_after}s. Error: {e}")
            _raise_classified(error, e)

    async def chat(self, request: ChatRequest) -> AdviceResult:
        try:
            if not request.message or not request.message.strip():
                raise ValidationError("Message required")
            if not self.configured:
                raise ConfigurationError(UNCONFIGURED_REPLY)

            prompt = build_chat_prompt(request.message, request.footprint, request.habitDescription)
            history = to_gemini_history(request.history)
            logger.info(f"Sending chat message to Gemini with {len(history)} history turns.")
            reply = await self._call_with_retry(lambda: self.client.send_chat_message(history, prompt))
            return AdviceResult(200, {"reply": clean_reply(reply)})
        except AdviceError as e:
            return self._chat_failure(e)
        except Exception as e:
            logger.exception(f"Unexpected error in AI chat: {e}")
            return AdviceResult(500, {"reply": GENERIC_FAILURE_REPLY})

    async def suggest(self, request: SuggestionsRequest) -> AdviceResult:
        try:
            missing = [
                name for name in ("transport", "energy", "diet", "waste", "total")
                if getattr(request, name) is None
            ]
            if missing:
                raise ValidationError(f"Missing footprint data in request body: {', '.join(missing)}")
            if not self.configured:
                raise ConfigurationError(UNCONFIGURED_ERROR)

            prompt = build_suggestions_prompt(request, self.audience)
            response_text = await self._call_with_retry(lambda: self.client.generate_text(prompt))
            return AdviceResult(200, {"suggestions": parse_suggestions(response_text)})
        except AdviceError as e:
            return self._suggestions_failure(e)
        except Exception as e:
            logger.exception(f"Unexpected error generating suggestions: {e}")
            return AdviceResult(500, {"error": "Failed to generate suggestions"})

    def _chat_failure(self, error: AdviceError) -> AdviceResult:
        if isinstance(error, ValidationError):
            return AdviceResult(400, {"error": error.message})
        if isinstance(error, ConfigurationError):
            logger.warning("AI chat requested but Gemini is not configured.")
            return AdviceResult(503, {"reply": UNCONFIGURED_REPLY})
        if isinstance(error, RateLimitError):
            retry_after = error.retry_after or REPORTED_RETRY_DELAY_SECONDS
            return AdviceResult(429, {"reply": rate_limited_reply(retry_after), "retryAfter": retry_after})
        if isinstance(error, UpstreamUnavailableError):
            logger.error(f"AI chat upstream unavailable ({error.status_code}): {error.message}")
            reply = AUTH_FAILURE_REPLY if error.status_code == 401 else MODEL_UNAVAILABLE_REPLY
            return AdviceResult(error.status_code, {"reply": reply})
        logger.error(f"AI chat error: {error.message}")
        return AdviceResult(500, {"reply": GENERIC_FAILURE_REPLY})

    def _suggestions_failure(self, error: AdviceError) -> AdviceResult:
        if isinstance(error, ValidationError):
            return AdviceResult(400, {"error": error.message})
        if isinstance(error, ConfigurationError):
            logger.warning("Suggestions requested but Gemini is not configured.")
            return AdviceResult(503, {
                "error": UNCONFIGURED_ERROR,
                "fallbackSuggestions": list(FALLBACK_SUGGESTION_TEXTS),
            })
        if isinstance(error, RateLimitError):
            retry_after = error.retry_after or REPORTED_RETRY_DELAY_SECONDS
            return AdviceResult(429, {"error": rate_limited_reply(retry_after), "retryAfter": retry_after})
        if isinstance(error, UpstreamUnavailableError):
            logger.error(f"Suggestions upstream unavailable ({error.status_code}): {error.message}")
            message = AUTH_FAILURE_REPLY if error.status_code == 401 else MODEL_UNAVAILABLE_REPLY
            return AdviceResult(error.status_code, {"error": message})
        logger.error(f"Gemini suggestions error: {error.message}")
        return AdviceResult(500, {"error": "Failed to generate suggestions"})
