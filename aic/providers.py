import logging

import httpx
import openai
from openai import OpenAI

from aic.constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_MODEL,
    DEFAULT_USER_PROMPT,
    MISSING_TOKEN_MESSAGE,
    PING_PROMPT,
    REQUEST_TIMEOUT_SECONDS,
)
from aic.errors import (
    BadResponseError,
    MissingKeyError,
    NetworkError,
    UnauthorizedError,
)
from aic.schemas import Configuration
from aic.services.prompt_builder import build_messages

logger = logging.getLogger(__name__)


def _first_choice_content(response) -> str:
    """Pulls choices[0].message.content out of a completion response."""
    # Non-JSON bodies come back from the SDK as plain strings.
    choices = getattr(response, "choices", None)
    if not isinstance(choices, list):
        raise BadResponseError(
            f"Unexpected API response: expected a list of choices, got {choices!r}."
        )
    if not choices:
        raise BadResponseError("No response from API: the choice list is empty.")
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    if not isinstance(content, str):
        raise BadResponseError(
            "Unexpected API response: the first choice has no message content."
        )
    return content


class CompletionClient:
    """
    Sends a single chat-completion request to an OpenAI-compatible endpoint.
    Retries are disabled; every failure surfaces to the caller.
    """

    def __init__(
        self,
        config: Configuration,
        http_client: httpx.Client | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ):
        if not config.api_token:
            raise MissingKeyError(MISSING_TOKEN_MESSAGE)
        self.config = config
        self.model = config.model or DEFAULT_MODEL
        self.base_url = (config.api_base_url or DEFAULT_API_BASE_URL).rstrip("/")
        self._client = OpenAI(
            api_key=config.api_token,
            base_url=self.base_url,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )

    def build_messages(self, diff: str) -> list[dict]:
        return build_messages(
            diff,
            self.config.system_prompt,
            self.config.user_prompt or DEFAULT_USER_PROMPT,
        )

    def generate(self, diff: str) -> str:
        """Returns the commit message proposed for `diff`, trimmed at the edges."""
        message = self._complete(self.build_messages(diff)).strip()
        if not message:
            raise BadResponseError("The API returned an empty commit message.")
        return message

    def ping(self) -> str:
        """Sends a minimal request to check connectivity and credentials."""
        return self._complete([{"role": "user", "content": PING_PROMPT}]).strip()

    def _complete(self, messages: list[dict]) -> str:
        logger.info(f"POST {self.base_url}/chat/completions (model={self.model})")
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=messages,
            )
        except openai.AuthenticationError as e:
            logger.error(f"Authentication failed: {e}")
            raise UnauthorizedError(
                f"The API rejected the token (401 Unauthorized): {e.message}"
            ) from e
        except openai.APIConnectionError as e:
            logger.error(f"Connection error: {e}", exc_info=True)
            raise NetworkError(
                f"Failed to send request to API at {self.base_url}: {e}"
            ) from e
        except openai.APIStatusError as e:
            logger.error(f"API returned status {e.status_code}: {e.message}")
            raise BadResponseError(
                f"API request failed ({e.status_code}): {e.message}"
            ) from e
        except (openai.APIResponseValidationError, ValueError) as e:
            logger.error(f"Unparseable API response: {e}", exc_info=True)
            raise BadResponseError(f"Failed to parse API response: {e}") from e

        return _first_choice_content(response)
