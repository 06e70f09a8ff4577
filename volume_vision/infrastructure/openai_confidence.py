from __future__ import annotations

from openai import OpenAI, OpenAIError
from pydantic import BaseModel, Field, ValidationError

from ..domain.confidence.service import ConfidenceRequest, ConfidenceResult, ConfidenceService
from ..shared.errors import ConfidenceCallError
from .openai_client import build_client, first_message_content, json_schema_format

SYSTEM_PROMPT = """You rate how reliable a liquid volume reading taken from a drinking glass is.

You receive the detected glass shape, a description of the water line and the estimated volume.
Assign a confidence score between 0 and 1 (inclusive) and explain the score briefly.

Consider:
- whether the water line behaves as expected for the given glass shape;
- any inconsistency suggesting the measurement is unreliable;
- whether the volume is realistic for the shape and the water line.

Answer with JSON only."""

CONFIDENCE_RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "confidenceScore": {
            "type": "number",
            "description": "Reliability of the volume reading, 0 to 1.",
        },
        "reasoning": {
            "type": "string",
            "description": "Why this score was assigned.",
        },
    },
    "required": ["confidenceScore", "reasoning"],
    "additionalProperties": False,
}


class ConfidenceResponseModel(BaseModel):
    confidenceScore: float = Field(..., ge=0.0, le=1.0)
    reasoning: str


def build_user_message(request: ConfidenceRequest) -> str:
    return "\n".join(
        [
            f"Glass Shape: {request.glass_shape}",
            f"Water Line Consistency: {request.water_line_consistency}",
            f"Volume Estimate: {request.volume_estimate:.1f} ml",
        ]
    )


class OpenAiConfidenceService(ConfidenceService):
    def __init__(
        self,
        logger,
        *,
        model: str = "gpt-4o-mini",
        api_key: str | None = None,
        timeout: float = 20.0,
        client: OpenAI | None = None,
    ) -> None:
        self._logger = logger
        self._model = model
        self._api_key = api_key
        self._timeout = timeout
        self._client = client

    def _get_client(self) -> OpenAI:
        if self._client is None:
            self._client = build_client(self._api_key, self._timeout)
        return self._client

    def score(self, request: ConfidenceRequest) -> ConfidenceResult:
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_user_message(request)},
        ]
        try:
            response = self._get_client().chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=0.2,
                response_format=json_schema_format("volume_confidence", CONFIDENCE_RESPONSE_SCHEMA),
            )
        except OpenAIError as exc:
            raise ConfidenceCallError(f"Confidence service unavailable: {exc}") from exc

        content = first_message_content(response)
        if content is None:
            raise ConfidenceCallError("Confidence service returned no content")
        try:
            parsed = ConfidenceResponseModel.model_validate_json(content)
        except ValidationError as exc:
            raise ConfidenceCallError("Confidence service returned an invalid payload") from exc
        self._logger.debug("confidence.scored", score=parsed.confidenceScore, volume=request.volume_estimate)
        return ConfidenceResult(score=parsed.confidenceScore, reasoning=parsed.reasoning)
