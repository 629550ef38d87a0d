"""
OpenRouter generation backend for the reflector.

Performs exactly one chat completion per call. No retries, no streaming and
no tool definitions: a call either returns text or raises.
"""

import httpx
import json
import logging
from pathlib import Path
from typing import Optional, Dict, Any, Union
from .config import get_settings

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """A generation backend call failed"""


class OpenRouterClient:
    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.settings = get_settings()
        self.api_key = api_key or self.settings.openrouter_api_key
        self.base_url = (base_url or self.settings.openrouter_base_url).rstrip("/")

    @staticmethod
    def _model_id(provider: Optional[str], model: str) -> str:
        return f"{provider}/{model}" if provider else model

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        try:
            content = data["choices"][0]["message"].get("content")
        except (KeyError, IndexError, TypeError, AttributeError):
            return ""
        if isinstance(content, str):
            return content.strip()
        if isinstance(content, list):
            parts = [
                part.get("text", "")
                for part in content
                if isinstance(part, dict) and part.get("type") == "text"
            ]
            return "\n".join(p for p in parts if p).strip()
        return ""

    @staticmethod
    def _record_exchange(session_file: Optional[Union[str, Path]], prompt: str, reply: str) -> None:
        if not session_file:
            return
        with open(session_file, "a", encoding="utf-8") as fh:
            for role, text in (("user", prompt), ("assistant", reply)):
                entry = {"type": "message", "message": {"role": role, "content": text}}
                fh.write(json.dumps(entry) + "\n")

    async def generate(
        self,
        prompt: str,
        provider: Optional[str],
        model: str,
        disable_tools: bool = True,
        timeout_ms: int = 60000,
        session_file: Optional[Union[str, Path]] = None,
        workspace_dir: Optional[Union[str, Path]] = None,
    ) -> str:
        """
        Run a single completion.

        Args:
            prompt: User prompt, sent as the only message
            provider: Optional provider namespace (the part before "/")
            model: Model name
            disable_tools: Tools are never offered; kept for the call contract
            timeout_ms: Request timeout in milliseconds
            session_file: Scratch session log the exchange is appended to
            workspace_dir: Agent workspace the call runs on behalf of

        Returns:
            Extracted response text (may be empty)

        Raises:
            GenerationError: on non-200 responses or transport failures
        """
        if not self.api_key:
            raise GenerationError("OpenRouter API key is not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        payload: Dict[str, Any] = {
            "model": self._model_id(provider, model),
            "messages": [
                {"role": "user", "content": prompt}
            ],
        }
        if not disable_tools:
            logger.debug("Tool use requested but no tools are registered; sending none")
        logger.debug(f"Generating with {payload['model']} (workspace={workspace_dir})")

        try:
            async with httpx.AsyncClient(timeout=timeout_ms / 1000) as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    headers=headers,
                    json=payload
                )
        except httpx.HTTPError as e:
            raise GenerationError(f"OpenRouter request failed: {e}") from e

        if response.status_code != 200:
            raise GenerationError(f"OpenRouter API error: {response.status_code} - {response.text}")

        text = self._extract_text(response.json())
        self._record_exchange(session_file, prompt, text)
        return text
