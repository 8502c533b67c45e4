"""Pydantic request/response models for the AdStory Web API."""
from __future__ import annotations

import base64
import binascii
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from adstory.config import ASPECT_RATIOS
from adstory.models import ContentStyle, ReferenceImage, VoiceCharacter


class ImagePayload(BaseModel):
    data: str                     # base64, no data: prefix
    mime_type: str = "image/jpeg"

    @field_validator("data")
    @classmethod
    def _strip_data_url(cls, value: str) -> str:
        if value.startswith("data:") and "," in value:
            value = value.split(",", 1)[1]
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("image data is not valid base64") from exc
        return value

    def to_reference(self) -> ReferenceImage:
        return ReferenceImage(data=base64.b64decode(self.data), mime_type=self.mime_type)


class CreatePlanRequest(BaseModel):
    products: list[ImagePayload] = Field(..., min_length=1)
    model: ImagePayload | None = None   # optional photo of the person to feature
    style: ContentStyle = ContentStyle.CINEMATIC
    language: str = "Indonesia"
    voice: VoiceCharacter = VoiceCharacter.ZEPHYR
    aspect_ratio: str = "1:1"
    preserve_face: bool = False

    @field_validator("aspect_ratio")
    @classmethod
    def _known_ratio(cls, value: str) -> str:
        if value not in ASPECT_RATIOS:
            raise ValueError(f"aspect_ratio must be one of {ASPECT_RATIOS}")
        return value


class TriggerRequest(BaseModel):
    voice: VoiceCharacter | None = None   # audio only; defaults to the project voice


class AssetView(BaseModel):
    state: Literal["idle", "pending", "ready", "failed"]
    error: str | None = None
    download_url: str | None = None
    progress: str | None = None   # cosmetic status line while a video renders


class SceneView(BaseModel):
    index: int
    visual_scene: str
    image_prompt: str
    video_prompt: str
    audio_script: str
    text_overlay: str
    image: AssetView
    video: AssetView
    audio: AssetView


class PlanView(BaseModel):
    plan_id: str
    content_title: str
    killer_hook: str
    product_description: str
    scenes: list[SceneView]


class ConfigPayload(BaseModel):
    gemini_api_key: str = ""
    has_default_key: bool = False   # read-only; set from the environment
    output_dir: str = "output"
    aspect_ratio: str = "1:1"
    voice: str = VoiceCharacter.ZEPHYR.value
    language: str = "Indonesia"
