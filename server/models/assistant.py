import json
import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional

import requests

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 60  # seconds
TEMPERATURE = 0.7
FALLBACK_REPLY = "I apologize, but I couldn't generate a response. Please try again."

SYSTEM_PROMPT = (
    "You are JamBot, the JA Makers assistant. Help brands, manufacturers, "
    "creators and lenders with manufacturing in Jamaica: certifications, "
    "export procedures, costing and finding partners. Be concise and say so "
    "when you are not sure."
)


class AssistantError(Exception):
    """Raised when the language model backend cannot produce a reply."""


@dataclass
class AssistantClient:
    """
    Chat client for a local Ollama server, or OpenRouter when selected and
    an API key is configured.
    """

    provider: str = "ollama"
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.1"
    openrouter_api_url: str = "https://openrouter.ai/api/v1/chat/completions"
    openrouter_api_key: Optional[str] = None
    openrouter_model: str = "openai/gpt-4o-mini"
    openrouter_referer: str = "http://localhost:5000/"
    openrouter_x_title: str = "Jamakers"

    @classmethod
    def from_settings(cls, settings) -> "AssistantClient":
        return cls(
            provider=settings.ai_provider,
            ollama_base_url=settings.ai_ollama_base_url.rstrip("/"),
            ollama_model=settings.ai_ollama_model,
            openrouter_api_url=settings.openrouter_api_url,
            openrouter_api_key=settings.openrouter_api_key,
            openrouter_model=settings.openrouter_model,
            openrouter_referer=settings.openrouter_referer,
            openrouter_x_title=settings.openrouter_x_title,
        )

    @property
    def uses_openrouter(self) -> bool:
        return self.provider.lower() == "openrouter" and bool(self.openrouter_api_key)

    def build_messages(self, message: str, history: Optional[List[dict]] = None) -> List[dict]:
        messages = [{"role": "system", "content": SYSTEM_PROMPT}]
        for turn in history or []:
            if turn.get("role") in ("user", "assistant") and turn.get("content"):
                messages.append({"role": turn["role"], "content": turn["content"]})
        messages.append({"role": "user", "content": message})
        return messages

    def _post(self, messages: List[dict], stream: bool) -> requests.Response:
        if self.uses_openrouter:
            url = self.openrouter_api_url
            body = {
                "model": self.openrouter_model,
                "messages": messages,
                "temperature": TEMPERATURE,
                "stream": stream,
            }
            headers = {
                "Authorization": f"Bearer {self.openrouter_api_key}",
                "HTTP-Referer": self.openrouter_referer,
                "X-Title": self.openrouter_x_title,
            }
        else:
            url = f"{self.ollama_base_url}/api/chat"
            body = {
                "model": self.ollama_model,
                "messages": messages,
                "options": {"temperature": TEMPERATURE},
                "stream": stream,
            }
            headers = {}
        try:
            response = requests.post(
                url, json=body, headers=headers, timeout=REQUEST_TIMEOUT, stream=stream
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Assistant request to %s failed: %s", url, exc)
            raise AssistantError("Failed to generate response from AI assistant") from exc
        return response

    def complete(self, message: str, history: Optional[List[dict]] = None) -> str:
        payload = self._post(self.build_messages(message, history), stream=False).json()
        if self.uses_openrouter:
            choices = payload.get("choices") or [{}]
            content = (choices[0].get("message") or {}).get("content")
        else:
            content = (payload.get("message") or {}).get("content")
        return content or FALLBACK_REPLY

    def stream(self, message: str, history: Optional[List[dict]] = None) -> Iterator[str]:
        """
        Open a streaming completion. Connection errors raise immediately;
        the returned iterator yields text fragments as they arrive.
        """
        response = self._post(self.build_messages(message, history), stream=True)
        return self._fragments(response)

    def _fragments(self, response: requests.Response) -> Iterator[str]:
        with response:
            for line in response.iter_lines(decode_unicode=True):
                if not line or not line.strip():
                    continue
                if self.uses_openrouter:
                    # Server-sent events: "data: {...}" lines ending with [DONE].
                    if not line.startswith("data:"):
                        continue
                    data = line[len("data:"):].strip()
                    if data == "[DONE]":
                        break
                    choices = json.loads(data).get("choices") or [{}]
                    fragment = (choices[0].get("delta") or {}).get("content")
                else:
                    chunk = json.loads(line)
                    fragment = (chunk.get("message") or {}).get("content") or chunk.get(
                        "response"
                    )
                if fragment:
                    yield fragment
