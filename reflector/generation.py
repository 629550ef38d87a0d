"""
Generation client with an ordered model fallback chain.

Each candidate runs in its own throwaway scratch directory, which is removed
before the next candidate starts. A candidate that raises, times out or
returns blank text is logged and skipped.
"""

import asyncio
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Optional, List, Sequence, Union

from .utils import split_provider_model

logger = logging.getLogger(__name__)


class GenerationClient:
    def __init__(self, backend, workspace_dir: Optional[Union[str, Path]] = None):
        """
        Args:
            backend: Object exposing ``async generate(prompt, provider, model,
                disable_tools, timeout_ms, session_file, workspace_dir) -> str``
            workspace_dir: Workspace passed through to the backend
        """
        self.backend = backend
        self.workspace_dir = workspace_dir

    async def _attempt(self, prompt: str, model_ref: str, timeout_ms: int, label: str) -> str:
        provider, model = split_provider_model(model_ref)
        temp_dir = await asyncio.to_thread(tempfile.mkdtemp, prefix=f"reflector-{label}-")
        try:
            session_file = Path(temp_dir) / "session.jsonl"
            result = await asyncio.wait_for(
                self.backend.generate(
                    prompt=prompt,
                    provider=provider,
                    model=model,
                    disable_tools=True,
                    timeout_ms=timeout_ms,
                    session_file=session_file,
                    workspace_dir=self.workspace_dir,
                ),
                timeout=timeout_ms / 1000
            )
            return (result or "").strip()
        finally:
            await asyncio.to_thread(shutil.rmtree, temp_dir, ignore_errors=True)

    async def call(
        self,
        prompt: str,
        models: Sequence[str],
        timeout_ms: int = 60000,
        label: str = "generic"
    ) -> Optional[str]:
        """
        Try each candidate model in order.

        Returns:
            Text from the first candidate with a non-empty response, or None
            when every candidate failed
        """
        candidates: List[str] = [m for m in models if m]
        for model_ref in candidates:
            try:
                text = await self._attempt(prompt, model_ref, timeout_ms, label)
            except asyncio.TimeoutError:
                logger.warning(f"{label} timed out after {timeout_ms}ms with model {model_ref}")
                continue
            except Exception as e:
                logger.warning(f"{label} failed with model {model_ref}: {e}")
                continue

            if text:
                logger.info(f"{label} succeeded with model {model_ref}")
                return text
            logger.warning(f"{label} returned empty response from {model_ref}")

        return None
