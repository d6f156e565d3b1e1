from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Mapping
from typing import Any

import aioboto3
from openai import AsyncAzureOpenAI, AsyncOpenAI

from uxpulse.core.config import AppSettings


logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an analytics assistant for a product team. You read aggregate "
    "user-interaction statistics and answer with short, concrete UX advice."
)


class InsightGenerationError(RuntimeError):
    """Raised when the text-generation provider fails or returns a broken stream."""


class InsightTimeoutError(InsightGenerationError):
    """Raised when draining the provider stream exceeds the configured deadline."""


class InsightGenerator:
    """Text generation with Azure OpenAI, an OpenAI-compatible endpoint, or Bedrock."""

    def __init__(self, settings: AppSettings):
        self._settings = settings
        self._azure_client: AsyncAzureOpenAI | None = None
        self._openai_client: AsyncOpenAI | None = None

        if settings.azure_openai_api_key and settings.azure_openai_endpoint and settings.azure_openai_deployment:
            self._azure_client = AsyncAzureOpenAI(
                api_key=settings.azure_openai_api_key.get_secret_value(),
                azure_endpoint=settings.azure_openai_endpoint,
                api_version=settings.azure_openai_api_version or "2024-02-15-preview",
            )
        elif settings.llm_api_key:
            self._openai_client = AsyncOpenAI(
                api_key=settings.llm_api_key.get_secret_value(),
                base_url=settings.llm_base_url,
            )

    @property
    def provider(self) -> str:
        if self._azure_client:
            return "azure-openai"
        if self._openai_client:
            return "openai-compatible"
        if self._settings.bedrock_region and self._settings.bedrock_model_id:
            return "bedrock"
        return "heuristic"

    async def stream_text(
        self,
        prompt: str,
        *,
        metrics: Mapping[str, Any] | None = None,
        max_tokens: int | None = None,
    ) -> AsyncIterator[str]:
        """Yield text fragments for ``prompt`` from the first configured provider."""
        max_tokens = max_tokens or self._settings.llm_max_tokens

        if self._azure_client:
            async for fragment in self._stream_chat(
                self._azure_client, self._settings.azure_openai_deployment, prompt, max_tokens
            ):
                yield fragment
            return

        if self._openai_client:
            async for fragment in self._stream_chat(
                self._openai_client, self._settings.llm_model, prompt, max_tokens
            ):
                yield fragment
            return

        if self._settings.bedrock_region and self._settings.bedrock_model_id:
            text = await self._invoke_bedrock_prompt(prompt, max_tokens=max_tokens)
        else:
            text = self._heuristic_report(metrics or {})

        for chunk in self._chunk_text(text):
            yield chunk

    async def drain(
        self,
        prompt: str,
        *,
        metrics: Mapping[str, Any] | None = None,
        timeout: float | None = None,
    ) -> str:
        """Collect the full streamed response, bounded by ``timeout`` seconds."""
        deadline = timeout if timeout is not None else self._settings.llm_timeout_seconds

        async def _collect() -> str:
            fragments: list[str] = []
            async for fragment in self.stream_text(prompt, metrics=metrics):
                fragments.append(fragment)
            return "".join(fragments)

        try:
            return await asyncio.wait_for(_collect(), timeout=deadline)
        except asyncio.TimeoutError as exc:
            logger.warning("Insight generation via %s exceeded %.1fs", self.provider, deadline)
            raise InsightTimeoutError(
                f"Text generation did not finish within {deadline:g} seconds."
            ) from exc

    async def _stream_chat(
        self,
        client: AsyncOpenAI | AsyncAzureOpenAI,
        model: str | None,
        prompt: str,
        max_tokens: int,
    ) -> AsyncIterator[str]:
        try:
            stream = await client.chat.completions.create(
                model=model,
                messages=self._build_messages(prompt),
                temperature=0.3,
                max_tokens=max_tokens,
                stream=True,
            )
            async for event in stream:
                for choice in getattr(event, "choices", None) or []:
                    delta = getattr(choice, "delta", None)
                    if not delta:
                        continue
                    content = getattr(delta, "content", None)
                    if content:
                        yield content
        except Exception as exc:
            logger.warning("Streaming completion from %s failed", self.provider, exc_info=exc)
            raise InsightGenerationError(f"Text generation failed: {exc}") from exc

    def _build_messages(self, prompt: str) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

    def _heuristic_report(self, metrics: Mapping[str, Any]) -> str:
        """Rule-based report used when no provider credentials are configured."""
        items: list[tuple[str, str]] = []

        drop_off = float(metrics.get("dropOffRate") or 0)
        conversion = float(metrics.get("conversionRate") or 0)
        rage_clicks = int(metrics.get("totalRageClicks") or 0)
        average_clicks = float(metrics.get("averageClicks") or 0)
        sessions = int(metrics.get("totalSessions") or 0)
        events = int(metrics.get("totalEvents") or 0)

        if drop_off >= 30:
            items.append(
                (
                    f"{drop_off:g}% of recorded events come from abandoned sessions.",
                    "Shorten the checkout path and show a progress indicator.",
                )
            )
        if rage_clicks:
            items.append(
                (
                    f"Users produced {rage_clicks} rage click bursts.",
                    "Review the elements under those clicks for slow or missing feedback.",
                )
            )
        if sessions and "averageClicks" in metrics and average_clicks < 1:
            items.append(
                (
                    "Events average fewer than one click each.",
                    "Make primary actions larger and place them above the fold.",
                )
            )
        if conversion and not items:
            items.append(
                (
                    f"Conversion sits at {conversion:g}% of events.",
                    "Test a shorter call to action on the busiest page.",
                )
            )
        if not items and (sessions or events):
            items.append(
                (
                    "Interaction levels look steady across pages.",
                    "Keep collecting events before changing the layout.",
                )
            )

        return "\n".join(
            f"{index}. {insight}\n**UX Suggestion:** {suggestion}"
            for index, (insight, suggestion) in enumerate(items, start=1)
        )

    def _chunk_text(self, text: str, chunk_size: int = 80) -> list[str]:
        """Split text into fragments when the provider does not stream."""
        if not text:
            return []
        return [text[start : start + chunk_size] for start in range(0, len(text), chunk_size)]

    async def _invoke_bedrock_prompt(self, prompt: str, *, max_tokens: int) -> str:
        try:
            async with self._bedrock_client() as client:
                body = json.dumps(
                    {
                        "inputText": f"{SYSTEM_PROMPT}\n\n{prompt}",
                        "textGenerationConfig": {
                            "maxTokenCount": max_tokens,
                            "temperature": 0.3,
                            "topP": 0.9,
                        },
                    }
                )
                response = await client.invoke_model(
                    modelId=self._settings.bedrock_model_id,
                    body=body,
                )
                payload = await response["body"].read()
        except Exception as exc:
            logger.warning("Bedrock invocation failed", exc_info=exc)
            raise InsightGenerationError(f"Bedrock invocation failed: {exc}") from exc

        try:
            parsed = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise InsightGenerationError("Bedrock returned a non-JSON payload.") from exc

        results = parsed.get("results") or []
        if not results:
            return ""
        return str(results[0].get("outputText") or "").strip()

    def _bedrock_client(self):
        session_kwargs: dict[str, Any] = {"region_name": self._settings.bedrock_region}
        if self._settings.aws_access_key_id and self._settings.aws_secret_access_key:
            session_kwargs.update(
                {
                    "aws_access_key_id": self._settings.aws_access_key_id.get_secret_value(),
                    "aws_secret_access_key": self._settings.aws_secret_access_key.get_secret_value(),
                }
            )

        session = aioboto3.Session()
        return session.client("bedrock-runtime", **session_kwargs)
