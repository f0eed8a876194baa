"""
Analysis Invoker - streams video analysis from the AI provider.

The provider returns a lazy, finite, non-restartable stream of text
fragments. The invoker consumes it exactly once, concatenates the
fragments, and reports the two failure paths separately:

- AnalysisProviderError: the provider call raised (before or mid-stream)
- EmptyAnalysisError: the call succeeded but produced no usable text

Partial text from a stream that fails midway is discarded.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Protocol

from google import genai
from google.genai import types

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisRequest:
    """Parameters for one provider call."""

    source_reference: str
    question: str
    model: str
    use_low_resolution: bool = False


class AnalysisProviderError(Exception):
    """Raised when the analysis provider call fails."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code
        super().__init__(message)


class EmptyAnalysisError(Exception):
    """Raised when the provider returns no usable text."""


class AnalysisProvider(Protocol):
    """Streaming analysis backend."""

    def stream(self, request: AnalysisRequest) -> AsyncIterator[str]:
        """Yield text fragments of the analysis for a request."""
        ...


class GeminiAnalysisProvider:
    """Google Gemini provider using the google-genai streaming API."""

    def __init__(self, api_key: str | None = None, client: genai.Client | None = None):
        """
        Initialize the provider.

        Args:
            api_key: Google Generative AI API key; when None the client falls
                back to the GOOGLE_API_KEY / GEMINI_API_KEY environment variables
            client: Pre-built client (mainly for tests)
        """
        self._api_key = api_key
        self._client = client

    @property
    def client(self) -> genai.Client:
        # Built lazily so a missing key surfaces as a job failure, not at startup
        if self._client is None:
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    @staticmethod
    def build_contents(request: AnalysisRequest) -> list[types.Content]:
        """Build the user turn: the video as file data followed by the question."""
        return [
            types.Content(
                role="user",
                parts=[
                    types.Part(
                        file_data=types.FileData(
                            file_uri=request.source_reference,
                            mime_type="video/*",
                        )
                    ),
                    types.Part(text=request.question),
                ],
            )
        ]

    @staticmethod
    def build_config(request: AnalysisRequest) -> types.GenerateContentConfig:
        """Build generation config, lowering media resolution for long videos."""
        if request.use_low_resolution:
            return types.GenerateContentConfig(
                response_mime_type="text/plain",
                media_resolution=types.MediaResolution.MEDIA_RESOLUTION_LOW,
            )
        return types.GenerateContentConfig(response_mime_type="text/plain")

    async def stream(self, request: AnalysisRequest) -> AsyncIterator[str]:
        response = await self.client.aio.models.generate_content_stream(
            model=request.model,
            contents=self.build_contents(request),
            config=self.build_config(request),
        )
        async for chunk in response:
            if chunk.text:
                yield chunk.text


def _error_code(exc: BaseException) -> str | None:
    # google-genai APIError carries both an HTTP code and a status string
    status = getattr(exc, "status", None)
    if status:
        return str(status)
    code = getattr(exc, "code", None)
    return str(code) if code is not None else None


class AnalysisInvoker:
    """Runs one analysis request and returns the accumulated text."""

    def __init__(self, provider: AnalysisProvider) -> None:
        self._provider = provider

    async def invoke(self, request: AnalysisRequest) -> str:
        """
        Stream an analysis and return the full text.

        Args:
            request: Analysis parameters

        Returns:
            The concatenated, non-empty analysis text

        Raises:
            AnalysisProviderError: If the provider raises at any point
            EmptyAnalysisError: If the stream yields only empty/whitespace text
        """
        fragments: list[str] = []

        try:
            async for fragment in self._provider.stream(request):
                if fragment:
                    fragments.append(fragment)
        except Exception as e:
            logger.warning(
                f"Analysis provider failed for {request.source_reference} "
                f"after {len(fragments)} chunks: {e}"
            )
            raise AnalysisProviderError(str(e), code=_error_code(e)) from e

        result = "".join(fragments)
        if not result.strip():
            raise EmptyAnalysisError(
                f"Provider returned no text for {request.source_reference}"
            )

        logger.info(
            f"Analysis stream finished for {request.source_reference}: "
            f"{len(fragments)} chunks, {len(result)} chars"
        )
        return result
