"""Core value types: scenes, assets and per-project settings."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Union

from .config import DEFAULT_IMAGE_ASPECT, DEFAULT_VIDEO_ASPECT, VIDEO_ASPECT_RATIOS

# image/audio bytes, or a downloaded video file
Payload = Union[bytes, Path]


class AssetKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"


class AssetState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


class VoiceCharacter(str, Enum):
    PUCK = "Puck"
    CHARON = "Charon"
    KORE = "Kore"
    FENRIR = "Fenrir"
    ZEPHYR = "Zephyr"


class ContentStyle(str, Enum):
    CINEMATIC = "Cinematic"
    UGC = "UGC (TikTok/Reels)"
    FACELESS = "Faceless (POV/ASMR)"
    MODEL = "Lifestyle Model"


# (code, label); the label is what the plan prompt asks for
SUPPORTED_LANGUAGES: list[tuple[str, str]] = [
    ("id-ID", "Indonesia"),
    ("ms-MY", "Malaysia"),
    ("th-TH", "Thailand"),
    ("en-US", "English (US)"),
    ("en-GB", "English (UK)"),
    ("ja-JP", "Japanese"),
    ("ko-KR", "Korean"),
    ("vi-VN", "Vietnamese"),
    ("zh-CN", "Mandarin (Simplified)"),
    ("ar-XA", "Arabic"),
    ("es-ES", "Spanish"),
]


@dataclass(frozen=True)
class Scene:
    index: int
    image_prompt: str
    video_prompt: str
    audio_script: str
    visual_scene: str = ""   # display only
    text_overlay: str = ""   # display only


@dataclass(frozen=True)
class AdPlan:
    """The drafted storyboard, consumed as-is."""
    title: str
    hook: str
    product_description: str
    scenes: tuple[Scene, ...] = ()


@dataclass(frozen=True)
class Asset:
    """One generated artifact for a (scene, kind) cell.

    Assets are immutable; a cell changes by swapping in a whole new Asset,
    so a reader never sees an old payload paired with a new state.
    """
    kind: AssetKind
    state: AssetState = AssetState.IDLE
    payload: Payload | None = None
    error_message: str | None = None

    @classmethod
    def idle(cls, kind: AssetKind) -> "Asset":
        return cls(kind=kind)

    def pending(self) -> "Asset":
        # previous payload stays visible while the new one renders
        return replace(self, state=AssetState.PENDING, error_message=None)

    def ready(self, payload: Payload) -> "Asset":
        return replace(self, state=AssetState.READY, payload=payload, error_message=None)

    def failed(self, message: str) -> "Asset":
        return replace(self, state=AssetState.FAILED, error_message=message)

    @property
    def is_pending(self) -> bool:
        return self.state is AssetState.PENDING

    @property
    def is_ready(self) -> bool:
        return self.state is AssetState.READY


@dataclass(frozen=True)
class ReferenceImage:
    data: bytes
    mime_type: str = "image/jpeg"


@dataclass
class ProjectSettings:
    """Inputs the user picked before the plan was drafted."""
    product_images: list[ReferenceImage] = field(default_factory=list)
    model_image: ReferenceImage | None = None
    style: ContentStyle = ContentStyle.CINEMATIC
    preserve_face: bool = False
    voice: str = VoiceCharacter.ZEPHYR.value
    aspect_ratio: str = DEFAULT_IMAGE_ASPECT
    language: str = "Indonesia"

    @property
    def video_aspect_ratio(self) -> str:
        # Veo renders landscape or portrait only
        if self.aspect_ratio in VIDEO_ASPECT_RATIOS:
            return self.aspect_ratio
        return DEFAULT_VIDEO_ASPECT

    def image_context(self) -> "ImageContext":
        refs: list[ReferenceImage] = []
        if self.product_images:
            refs.append(self.product_images[0])
        if self.model_image is not None:
            refs.append(self.model_image)
        return ImageContext(
            reference_images=refs,
            aspect_ratio=self.aspect_ratio,
            style=self.style,
            preserve_face=self.preserve_face,
        )


@dataclass(frozen=True)
class ImageContext:
    reference_images: list[ReferenceImage] = field(default_factory=list)  # at most 2
    aspect_ratio: str = DEFAULT_IMAGE_ASPECT
    style: ContentStyle = ContentStyle.CINEMATIC
    preserve_face: bool = False
