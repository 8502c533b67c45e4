"""Drafts the ad storyboard from product photos."""
from __future__ import annotations

import json
import logging
import re

from pydantic import ValidationError

from schemas import AdPlanResponse

from . import prompts
from .errors import ProviderRequestFailed
from .models import ContentStyle, ReferenceImage
from .provider import GenerationProvider

log = logging.getLogger(__name__)


def _extract_json(text: str) -> dict:
    """Extract the first JSON object from a text response."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    fence = re.search(r"```(?:json)?\s*(\{.*?\})\s*```", text, re.DOTALL)
    if fence:
        try:
            return json.loads(fence.group(1))
        except json.JSONDecodeError:
            pass
    raise ProviderRequestFailed(f"Plan response is not valid JSON: {text[:200]}")


async def generate_ad_plan(
    provider: GenerationProvider,
    product_images: list[ReferenceImage],
    model_image: ReferenceImage | None = None,
    style: ContentStyle = ContentStyle.CINEMATIC,
    language: str = "Indonesia",
) -> AdPlanResponse:
    """Ask the provider for a storyboard and validate it.

    The optional model photo goes last so the prompt can refer to it as
    "the last image".
    """
    if not product_images:
        raise ValueError("At least one product image is required.")

    images = list(product_images)
    if model_image is not None:
        images.append(model_image)
    prompt = prompts.plan_prompt(style, language, has_model=model_image is not None)

    raw = await provider.generate_plan(prompt, images)
    log.debug("Plan raw response:\n%s", raw)

    try:
        plan = AdPlanResponse.model_validate(_extract_json(raw))
    except ValidationError as exc:
        raise ProviderRequestFailed(f"Plan response has an unexpected shape: {exc}") from exc

    if not plan.scenes:
        raise ProviderRequestFailed("Plan response contains no scenes.")
    log.info("Plan drafted: %r, %d scenes", plan.content_title, len(plan.scenes))
    return plan
