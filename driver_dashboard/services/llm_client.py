# driver_dashboard/services/llm_client.py
import openai
import json
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from driver_dashboard.config import settings
from driver_dashboard.models import (
    OptimizeRouteRequest,
    Recommendation,
    RecommendationList,
    RouteOptimization,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Initialize OpenAI client if API key is available
if settings.OPENAI_API_KEY:
    client = openai.OpenAI(api_key=settings.OPENAI_API_KEY)
else:
    client = None
    logger.warning("OpenAI API key is not configured. Route optimization and recommendations are disabled.")

SYSTEM_PROMPT = (
    "You are an expert logistics assistant for truck drivers. "
    "Always answer with a single JSON object and nothing else."
)


class LLMError(Exception):
    """Base class for failures talking to the generative model."""


class LLMNotConfiguredError(LLMError):
    pass


class LLMUpstreamError(LLMError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class LLMOutputError(LLMError):
    """The model answered, but not with something we can use. `raw` keeps the text."""

    def __init__(self, message: str, raw: str):
        super().__init__(message)
        self.message = message
        self.raw = raw


def _complete_json(prompt: str) -> str:
    if client is None:
        raise LLMNotConfiguredError("OpenAI API key not set. AI features are unavailable.")

    try:
        response = client.chat.completions.create(
            model=settings.OPENAI_MODEL,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt}
            ]
        )
    except openai.APIStatusError as e:
        logger.error(f"OpenAI returned status {e.status_code}: {e.message}")
        raise LLMUpstreamError(e.message, status_code=e.status_code) from e
    except openai.APIError as e:
        logger.error(f"OpenAI request failed: {e}", exc_info=True)
        raise LLMUpstreamError(str(e)) from e

    if not response.choices:
        raise LLMOutputError("Model returned no choices", raw=str(response))
    content = response.choices[0].message.content
    if not content:
        raise LLMOutputError("Model returned an empty response", raw=content or "")
    return content


def _parse(content: str, model: Type[ModelT]) -> ModelT:
    try:
        return model.model_validate_json(content)
    except ValidationError as e:
        logger.warning(f"Model output failed {model.__name__} validation with {e.error_count()} errors")
        raise LLMOutputError(f"Model output is not a valid {model.__name__}", raw=content) from e


def optimize_route(request: OptimizeRouteRequest) -> RouteOptimization:
    """
    Asks the model for a visiting order plus distance/duration estimates and
    suggested stops.

    The reply must name only the deliveries it was given and none twice.
    Deliveries the model leaves out are appended in their original order.
    """
    payload = request.model_dump(mode="json")
    prompt = (
        f"Plan the most efficient order for a truck leaving "
        f"({request.start_location.lat},{request.start_location.lng}) to visit these deliveries.\n\n"
        f"Deliveries:\n{json.dumps(payload['deliveries'], indent=2)}\n\n"
        f"Driver preferences:\n{json.dumps(payload.get('preferences') or {}, indent=2)}\n\n"
        f"Respond with JSON of the form:\n"
        f'{{"optimized_route": [<delivery id>, ...], "estimated_distance": <km>, '
        f'"estimated_duration": <minutes>, "recommended_stops": [{{"type": "fuel|rest|charging", '
        f'"after_delivery_id": <delivery id>, "location": {{"lat": <float>, "lng": <float>}}, '
        f'"reason": "<text>", "estimated_arrival_time": "<HH:MM>"}}], "suggestions": "<text>"}}'
    )
    content = _complete_json(prompt)
    result = _parse(content, RouteOptimization)

    given = [delivery.id for delivery in request.deliveries]
    unknown = [i for i in result.optimized_route if i not in given]
    if unknown:
        raise LLMOutputError(f"Model route references unknown deliveries: {unknown}", raw=content)
    if len(set(result.optimized_route)) != len(result.optimized_route):
        raise LLMOutputError("Model route visits a delivery more than once", raw=content)

    missing = [i for i in given if i not in result.optimized_route]
    if missing:
        logger.warning(f"Model route omitted deliveries {missing}. Appending them in original order.")
        result = result.model_copy(update={"optimized_route": result.optimized_route + missing})

    stray_stops = [s for s in result.recommended_stops if s.after_delivery_id not in given]
    if stray_stops:
        logger.warning(f"Dropping {len(stray_stops)} recommended stops anchored to unknown deliveries.")
        result = result.model_copy(update={
            "recommended_stops": [s for s in result.recommended_stops if s.after_delivery_id in given]
        })
    return result


def get_recommendations(kind: str, context: Dict[str, Any]) -> List[Recommendation]:
    """Prioritized free-text recommendations of the given kind for the driver's current data."""
    prompt = (
        f"Give a truck driver up to 5 short, actionable {kind} recommendations "
        f"based on their current data.\n\n"
        f"Data:\n{json.dumps(context, indent=2, default=str)}\n\n"
        f"Respond with JSON of the form:\n"
        f'{{"recommendations": [{{"type": "{kind}", "text": "<recommendation>", '
        f'"priority": "high|medium|low"}}]}}'
    )
    content = _complete_json(prompt)
    return _parse(content, RecommendationList).recommendations
