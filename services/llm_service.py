# services/llm_service.py
import asyncio
import logging
from typing import Any, Dict, List

import requests

from config import settings
from core.domain import Chunk, GenerationResult, Prompt
from core.exceptions import GenerationError, NoResultError
from core.interfaces import IGenerationService

logger = logging.getLogger(settings.LOGGER_NAME)


class OllamaChatService(IGenerationService):
    """Chat generation through a local Ollama server (``/api/chat``, non-streaming)."""

    def __init__(
        self,
        base_url: str,
        model: str,
        temperature: float = 0.7,
        timeout: int = settings.REQUEST_TIMEOUT,
    ):
        """
        Initializes the OllamaChatService.

        Args:
            base_url: The base URL of the Ollama API.
            model: The name of the chat model to use.
            temperature: Sampling temperature passed as a model option.
            timeout: The request timeout in seconds.
        """
        self.base_url = base_url.rstrip('/')
        self.model = model
        self.temperature = temperature
        self.timeout = timeout

    @property
    def model_name(self) -> str:
        return self.model

    def _post_chat(self, prompt: Prompt) -> Dict[str, Any]:
        try:
            logger.info(f"Sending prompt to LLM model '{self.model}'...")
            response = requests.post(
                f'{self.base_url}/api/chat',
                json={
                    'model': self.model,
                    'messages': [
                        {'role': 'system', 'content': prompt.system},
                        {'role': 'user', 'content': prompt.user},
                    ],
                    'stream': False,
                    'options': {'temperature': self.temperature},
                },
                timeout=self.timeout
            )
            response.raise_for_status()  # Raises an HTTPError for bad responses (4xx or 5xx)
            return response.json()

        except requests.exceptions.Timeout as e:
            logger.error(f"LLM request timed out after {self.timeout} seconds.")
            raise GenerationError("LLM request timed out") from e
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Cannot connect to LLM at {self.base_url}. Is the service running?")
            raise GenerationError("Cannot connect to LLM service") from e
        except requests.exceptions.HTTPError as e:
            logger.error(f"LLM service returned an error: {e.response.status_code} {e.response.text}")
            raise GenerationError(f"LLM error: {e.response.status_code}") from e
        except ValueError as e:
            logger.error("LLM response was not valid JSON.")
            raise NoResultError("Can't get chat response") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"LLM request failed: {e}")
            raise GenerationError(f"LLM request failed: {e}") from e

    async def generate(self, prompt: Prompt, context: List[Chunk]) -> GenerationResult:
        result = await asyncio.to_thread(self._post_chat, prompt)

        message = result.get('message') if isinstance(result, dict) else None
        content = message.get('content') if isinstance(message, dict) else None
        if not isinstance(content, str) or not content.strip():
            logger.warning("Can't get chat response: LLM response was empty or malformed.")
            raise NoResultError("Can't get chat response")

        logger.info("Successfully received response from LLM.")
        return GenerationResult(text=content.strip(), used_context=tuple(context))

    def __repr__(self) -> str:
        return f"OllamaChatService(model={self.model!r}, base_url={self.base_url!r})"
