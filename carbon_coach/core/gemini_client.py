# carbon_coach/core/gemini_client.py
import google.generativeai as genai
from .config import Settings
from .errors import UnknownError
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class GeminiClient:
    """Wrapper over the two Gemini models used by the advice gateway. Built once at startup."""

    def __init__(self, api_key: str, chat_model_name: str, suggestions_model_name: str):
        genai.configure(api_key=api_key)
        self.chat_model_name = chat_model_name
        self.suggestions_model_name = suggestions_model_name
        self._chat_model = genai.GenerativeModel(chat_model_name)
        self._suggestions_model = genai.GenerativeModel(suggestions_model_name)

    async def generate_text(self, prompt: str) -> str:
        response = await self._suggestions_model.generate_content_async(prompt)
        return self._response_text(response)

    async def send_chat_message(self, history: list[dict], message: str) -> str:
        chat = self._chat_model.start_chat(history=history)
        response = await chat.send_message_async(message)
        return self._response_text(response)

    @staticmethod
    def _response_text(response) -> str:
        # Basic safety check (can be expanded)
        if not response.candidates or not response.candidates[0].content.parts:
            logger.warning(f"Gemini response might be blocked or empty. Response: {response}")
            if response.prompt_feedback and response.prompt_feedback.block_reason:
                raise UnknownError(f"Blocked: {response.prompt_feedback.block_reason}")
            raise UnknownError("Empty response from Gemini.")
        return response.text


def build_gemini_client(settings: Settings) -> Optional[GeminiClient]:
    if not settings.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY is not set. AI advice endpoints will answer as unconfigured.")
        return None
    try:
        client = GeminiClient(
            api_key=settings.GEMINI_API_KEY,
            chat_model_name=settings.GEMINI_CHAT_MODEL,
            suggestions_model_name=settings.GEMINI_SUGGESTIONS_MODEL,
        )
        logger.info("Gemini client configured successfully.")
        return client
    except Exception as e:
        logger.error(f"Failed to configure Gemini client: {e}")
        return None
