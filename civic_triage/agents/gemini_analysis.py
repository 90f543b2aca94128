"""
Gemini analysis client.

Wraps the Google GenAI SDK to triage photo reports and forecast
infrastructure issues using structured JSON output, and parses any
grounding sources attached to the answer.
"""

import json
import logging
from typing import Any, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import ValidationError

from ..config import EngineConfig, resolve_api_key
from ..constants import (
    DEEP_ANALYSIS_THINKING_BUDGET,
    DEFAULT_DEEP_ANALYSIS_MODEL,
    DEFAULT_PREDICTION_MODEL,
    DEFAULT_TRIAGE_MODEL,
    MODEL_COSTS,
)
from ..errors import ExternalServiceUnavailable, ResponseParseError
from ..llm.prompts import (
    PREDICTION_REQUEST,
    TRIAGE_SYSTEM_PROMPT,
    prediction_system_prompt,
    triage_description_text,
    triage_location_text,
)
from ..llm.schemas import (
    PREDICTION_RESPONSE_SCHEMA,
    TRIAGE_RESPONSE_SCHEMA,
    CitationKind,
    CitationSource,
    GeoPoint,
    Prediction,
    PredictionBatch,
    ReviewSnippet,
    TriageResult,
)
from ..models.report import PhotoPayload
from .port import TriageResponse

logger = logging.getLogger(__name__)

TRIAGE_PARSE_ERROR = "Could not parse AI response. Please try again."
PREDICTION_PARSE_ERROR = "Could not parse AI prediction response. Please try again."


def extract_json_from_response(text: str) -> Optional[str]:
    """
    Extract the first complete JSON object from model output.

    Handles plain JSON, JSON wrapped in markdown code fences and JSON followed
    by trailing prose. Returns None when no complete object is present.
    """
    text = text.strip()

    if "```json" in text:
        text = text.split("```json")[1].split("```")[0].strip()
    elif "```" in text:
        parts = text.split("```")
        if len(parts) >= 2:
            text = parts[1].strip()

    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escape_next = False

    for i, char in enumerate(text[start:], start):
        if escape_next:
            escape_next = False
            continue
        if char == "\\":
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]

    return None


def parse_triage_result(text: str) -> TriageResult:
    """Validate model output as a TriageResult, or raise ResponseParseError."""
    json_text = extract_json_from_response(text or "")
    if json_text is None:
        logger.warning(f"Triage response contained no JSON object: {(text or '')[:200]}")
        raise ResponseParseError(TRIAGE_PARSE_ERROR, raw_text=text)
    try:
        return TriageResult.model_validate_json(json_text)
    except ValidationError as e:
        logger.warning(f"Triage response failed validation: {e.error_count()} errors")
        logger.debug(f"Raw response: {json_text[:500]}")
        raise ResponseParseError(TRIAGE_PARSE_ERROR, raw_text=text) from e


def parse_predictions(text: str) -> list[Prediction]:
    """Validate model output as a prediction batch, or raise ResponseParseError."""
    json_text = extract_json_from_response(text or "")
    if json_text is None:
        raise ResponseParseError(PREDICTION_PARSE_ERROR, raw_text=text)
    try:
        return PredictionBatch.model_validate(json.loads(json_text)).predictions
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"Prediction response failed validation: {e}")
        raise ResponseParseError(PREDICTION_PARSE_ERROR, raw_text=text) from e


def parse_citations(response: Any) -> Optional[tuple[CitationSource, ...]]:
    """Collect web and maps grounding sources from the first candidate, or None."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None

    metadata = getattr(candidates[0], "grounding_metadata", None)
    if not metadata:
        return None

    citations = []
    for chunk in getattr(metadata, "grounding_chunks", None) or []:
        web = getattr(chunk, "web", None)
        if web:
            citations.append(
                CitationSource(
                    kind=CitationKind.WEB,
                    uri=getattr(web, "uri", None),
                    title=getattr(web, "title", None),
                )
            )
            continue

        maps = getattr(chunk, "maps", None)
        if maps:
            snippets = []
            answer_sources = getattr(maps, "place_answer_sources", None)
            for snippet in getattr(answer_sources, "review_snippets", None) or []:
                snippets.append(
                    ReviewSnippet(
                        uri=getattr(snippet, "uri", None) or getattr(snippet, "google_maps_uri", None),
                        title=getattr(snippet, "title", None),
                    )
                )
            citations.append(
                CitationSource(
                    kind=CitationKind.MAPS,
                    uri=getattr(maps, "uri", None),
                    title=getattr(maps, "title", None),
                    review_snippets=snippets,
                )
            )

    return tuple(citations) if citations else None


class GeminiAnalysisClient:
    """
    AnalysisPort backed by Gemini structured output.

    The API key is resolved lazily: a missing key fails the individual call
    with ExternalServiceUnavailable, so it lands on the report being triaged.

    Usage:
        client = GeminiAnalysisClient.from_config(EngineConfig.from_env())
        response = await client.triage("Deep pothole", photo, location, deep_analysis=False)
        print(response.result.priority_score)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        triage_model: str = DEFAULT_TRIAGE_MODEL,
        deep_analysis_model: str = DEFAULT_DEEP_ANALYSIS_MODEL,
        prediction_model: str = DEFAULT_PREDICTION_MODEL,
        thinking_budget: int = DEEP_ANALYSIS_THINKING_BUDGET,
        client: Optional[genai.Client] = None,
    ):
        """
        Args:
            api_key: Gemini API key (defaults to GEMINI_API_KEY / GOOGLE_API_KEY / API_KEY)
            triage_model: Model for standard triage
            deep_analysis_model: Model for deep-analysis triage
            prediction_model: Model for predictions
            thinking_budget: Thinking tokens for deep analysis and predictions
            client: Pre-built SDK client (skips key resolution)
        """
        self.api_key = resolve_api_key(api_key)
        self.triage_model = triage_model
        self.deep_analysis_model = deep_analysis_model
        self.prediction_model = prediction_model
        self.thinking_budget = thinking_budget
        self._client = client
        self.total_cost_usd = 0.0

    @classmethod
    def from_config(cls, config: EngineConfig) -> "GeminiAnalysisClient":
        return cls(
            api_key=config.api_key,
            triage_model=config.triage_model,
            deep_analysis_model=config.deep_analysis_model,
            prediction_model=config.prediction_model,
            thinking_budget=config.thinking_budget,
        )

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self.api_key:
                raise ExternalServiceUnavailable(
                    "API key not found. Set GEMINI_API_KEY or GOOGLE_API_KEY in environment, "
                    "or pass api_key parameter."
                )
            self._client = genai.Client(api_key=self.api_key)
            logger.info(f"GeminiAnalysisClient initialized with triage model: {self.triage_model}")
        return self._client

    async def _generate(self, model: str, contents: Any, config: types.GenerateContentConfig) -> Any:
        client = self._get_client()
        try:
            response = await client.aio.models.generate_content(model=model, contents=contents, config=config)
        except genai_errors.APIError as e:
            logger.error(f"Gemini request failed ({model}): {e}")
            raise ExternalServiceUnavailable(f"Analysis service request failed: {e}") from e
        except httpx.HTTPError as e:
            logger.error(f"Gemini transport error ({model}): {type(e).__name__}: {e}")
            raise ExternalServiceUnavailable(f"Analysis service unreachable: {e}") from e

        input_tokens = 0
        output_tokens = 0
        usage = getattr(response, "usage_metadata", None)
        if usage:
            input_tokens = getattr(usage, "prompt_token_count", 0) or 0
            output_tokens = getattr(usage, "candidates_token_count", 0) or 0
        cost = self._calculate_cost(model, input_tokens, output_tokens)
        self.total_cost_usd += cost
        logger.debug(f"Gemini call: {model} | Tokens: {input_tokens}->{output_tokens} | Cost: ${cost:.6f}")
        return response

    async def triage(
        self,
        description: str,
        photo: PhotoPayload,
        location: Optional[GeoPoint],
        deep_analysis: bool,
    ) -> TriageResponse:
        """
        Triage one report.

        Args:
            description: Citizen's description of the issue
            photo: Photo payload (base64 data + MIME type)
            location: Optional coordinates of the issue
            deep_analysis: Use the pro model with a thinking budget

        Returns:
            TriageResponse with the validated result and any grounding sources

        Raises:
            ExternalServiceUnavailable: Missing key or failed request
            ResponseParseError: Output is not a valid TriageResult
        """
        model = self.deep_analysis_model if deep_analysis else self.triage_model

        parts = [
            types.Part.from_text(text=triage_description_text(description)),
            types.Part.from_bytes(data=photo.raw_bytes(), mime_type=photo.mime_type),
        ]
        if location:
            parts.append(types.Part.from_text(text=triage_location_text(location)))

        config = types.GenerateContentConfig(
            system_instruction=TRIAGE_SYSTEM_PROMPT,
            response_mime_type="application/json",
            response_schema=TRIAGE_RESPONSE_SCHEMA,
            thinking_config=types.ThinkingConfig(thinking_budget=self.thinking_budget) if deep_analysis else None,
        )

        response = await self._generate(model, parts, config)
        result = parse_triage_result(response.text or "")
        citations = parse_citations(response)

        logger.info(
            f"Triage completed: category={result.category}, severity={result.severity}, "
            f"priority={result.priority_score}, sources={len(citations) if citations else 0}"
        )
        return TriageResponse(result=result, citations=citations)

    async def predict(self, location: Optional[GeoPoint]) -> list[Prediction]:
        """
        Forecast infrastructure issues around a location (or a default city).

        Raises:
            ExternalServiceUnavailable: Missing key or failed request
            ResponseParseError: Output is not a valid prediction list
        """
        config = types.GenerateContentConfig(
            system_instruction=prediction_system_prompt(location),
            response_mime_type="application/json",
            response_schema=PREDICTION_RESPONSE_SCHEMA,
            thinking_config=types.ThinkingConfig(thinking_budget=self.thinking_budget),
        )

        response = await self._generate(self.prediction_model, PREDICTION_REQUEST, config)
        predictions = parse_predictions(response.text or "")
        logger.info(f"Predictions generated: {len(predictions)}")
        return predictions

    def _calculate_cost(self, model: str, input_tokens: int, output_tokens: int) -> float:
        costs = MODEL_COSTS.get(model, MODEL_COSTS[DEFAULT_TRIAGE_MODEL])
        return (input_tokens / 1_000_000) * costs["input"] + (output_tokens / 1_000_000) * costs["output"]
