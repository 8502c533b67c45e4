"""Prompt templates sent to the generation models."""
from __future__ import annotations

from .models import ContentStyle

_PLAN_TEMPLATE = """Role: Expert Commercial Director. Create a high-conversion video storyboard based on the images.
Visual Style: {style}. {model_instruction}
LANGUAGE REQUIREMENT: The entire output (contentTitle, killerHook, productDescription, visualScene, audioScript, and textOverlay) MUST be written in {language}.
UNIVERSAL CTA: Do NOT use platform-specific terms. Use professional, high-conversion calls-to-action suitable for TV, YouTube, Instagram, or TikTok.
Provide {min_scenes}-{max_scenes} scenes in JSON format with title, hook, product description, and scene details including specific imagePrompt and videoPrompt.
Image prompts must describe perfect human anatomy (5 fingers, full limbs) and absolutely NO watermarks or logos."""

_MODEL_INSTRUCTION = (
    "Target Model is provided in the last image. Base character visual on this person. "
    "Ensure the model's anatomy is perfect (no extra fingers, no cut legs)."
)

_IMAGE_TEMPLATE = """Professional high-end commercial advertising photography: {prompt}. Style: {style}.
Anatomical integrity: perfect human proportions, full body visible if described, five fingers per hand, proportional legs.
Aesthetic: sharp focus, high contrast, cinematic lighting, 8k.
NEGATIVE PROMPT (Strictly avoid): watermark, text, signature, logos, extra fingers, deformed limbs, cut off feet, missing legs, blurry face, six fingers, distorted body."""

_PRESERVE_FACE = "Keep the face of the person in the reference photo exactly as it is."

_VIDEO_SUFFIX = "High quality, cinematic motion, realistic textures, NO watermarks."

MIN_SCENES = 3
MAX_SCENES = 5


def plan_prompt(style: ContentStyle, language: str, has_model: bool) -> str:
    return _PLAN_TEMPLATE.format(
        style=style.value,
        model_instruction=_MODEL_INSTRUCTION if has_model else "",
        language=language,
        min_scenes=MIN_SCENES,
        max_scenes=MAX_SCENES,
    )


def image_prompt(prompt: str, style: ContentStyle, preserve_face: bool = False) -> str:
    text = _IMAGE_TEMPLATE.format(prompt=prompt.strip().rstrip("."), style=style.value)
    if preserve_face:
        text += "\n" + _PRESERVE_FACE
    return text


def video_prompt(prompt: str) -> str:
    return f"{prompt.strip().rstrip('.')}. {_VIDEO_SUFFIX}"
