#backend/app/services/analysis_service.py
"""
Turns an idea's title, description and tags into a validated analysis.

The provider's reply is untrusted free text. We locate the JSON object in it
by balanced-brace scanning and validate it field by field against
AnalysisPayload. Any problem rejects the whole analysis; partial results are
never returned.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Iterator, List, Optional

from pydantic import ValidationError

from app.core.config import settings
from app.core.exceptions import InvalidAnalysisSchema, UnparsableResponse, ValidationInput
from app.schemas.analysis import AnalysisPayload, AnalysisResult
from app.services import llm_service

logger = logging.getLogger(__name__)

ANALYSIS_PROMPT = """
Analyze this SaaS idea and provide a detailed assessment:

Title: {title}
Description: {description}
Tags: {tags}

Respond with ONLY a JSON object, no other text, matching exactly this schema:
{{
  "marketDemand": <number between 1 and 10>,
  "competitorAnalysis": "<detailed analysis of competition, as a string>",
  "techStackSuggestion": ["<array of recommended technologies, as strings>"],
  "featureSuggestions": ["<array of key features to implement, as strings>"],
  "mrrProjection": {{
    "min": <minimum monthly recurring revenue projection, non-negative number>,
    "max": <maximum monthly recurring revenue projection, non-negative number, not less than min>
  }},
  "effortEstimation": {{
    "months": <estimated development time in months, positive integer>,
    "teamSize": <recommended team size, positive integer>
  }}
}}

Consider market size, competition level, technical complexity, monetization potential, and implementation effort.
"""


def build_analysis_prompt(title: str, description: str, tags: List[str]) -> str:
    return ANALYSIS_PROMPT.format(
        title=title,
        description=description,
        tags=", ".join(tags) if tags else "none",
    )


def _match_object(text: str, start: int) -> Optional[int]:
    """
    Index of the brace closing the object opened at `start`, or None.
    Braces inside JSON string literals don't count towards nesting.
    """
    depth = 0
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    return None


def _iter_object_spans(text: str) -> Iterator[str]:
    """
    Yields the top-level {...} spans of `text`, in order. A stray opening
    brace that never closes is skipped rather than swallowing the rest.
    """
    pos = text.find("{")
    while pos != -1:
        end = _match_object(text, pos)
        if end is None:
            pos = text.find("{", pos + 1)
        else:
            yield text[pos:end + 1]
            pos = text.find("{", end + 1)


def extract_json_object(text: str) -> Optional[dict]:
    """
    Returns the first top-level JSON object embedded in `text`, or None.
    Spans that are brace-balanced but not valid JSON (prose like "{see below}")
    are skipped.
    """
    for span in _iter_object_spans(text):
        try:
            value = json.loads(span)
        except ValueError:
            continue
        if isinstance(value, dict):
            return value
    return None


def parse_analysis(text: str) -> AnalysisPayload:
    """
    Extracts and validates an analysis from raw provider output.
    Raises UnparsableResponse or InvalidAnalysisSchema.
    """
    data = extract_json_object(text or "")
    if data is None:
        raise UnparsableResponse("Could not find a JSON object in the provider response")

    try:
        return AnalysisPayload.model_validate(data)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise InvalidAnalysisSchema(
            f"Provider response failed validation on: {', '.join(fields)}"
        ) from e


async def request_analysis(
    title: str,
    description: str,
    tags: List[str],
    provider: Optional[str] = None,
) -> AnalysisResult:
    """
    Runs one analysis pass for an idea. Makes exactly one provider call.
    """
    if not title or not title.strip():
        raise ValidationInput("Title must not be empty.")
    if not description or not description.strip():
        raise ValidationInput("Description must not be empty.")

    provider = provider or settings.ANALYSIS_PROVIDER
    if provider not in llm_service.SUPPORTED_PROVIDERS:
        raise ValidationInput(f"Unsupported AI provider: {provider}")

    prompt = build_analysis_prompt(title.strip(), description.strip(), tags)
    logger.info("Requesting idea analysis from %s", provider)
    text = await llm_service.generate_text(prompt, provider=provider)

    try:
        payload = parse_analysis(text)
    except (UnparsableResponse, InvalidAnalysisSchema) as e:
        logger.warning("Discarding %s analysis: %s", provider, e.message)
        raise

    return AnalysisResult(
        payload=payload,
        provider=provider,
        validated_at=datetime.now(timezone.utc),
    )
