"""Gemini generation provider (plan, images, Veo video, TTS)."""
from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator

import requests
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..config import IMAGE_MODEL, PLAN_MODEL, TTS_MODEL, VIDEO_MODEL, VIDEO_RESOLUTION
from ..errors import AdStoryError, ProviderRequestFailed, ProviderUnavailable, ResourceNotFound
from ..models import ContentStyle, ReferenceImage
from ..provider import VideoJobStatus

log = logging.getLogger(__name__)

_NOT_FOUND_MARKER = "Requested entity was not found"
_BAD_KEY_MARKERS = ("API key not valid", "API_KEY_INVALID", "API key expired")

_STRING = types.Schema(type=types.Type.STRING)

PLAN_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "contentTitle": _STRING,
        "killerHook": _STRING,
        "productDescription": _STRING,
        "scenes": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "no": types.Schema(type=types.Type.INTEGER),
                    "visualScene": _STRING,
                    "imagePrompt": _STRING,
                    "videoPrompt": _STRING,
                    "audioScript": _STRING,
                    "textOverlay": _STRING,
                },
                required=["no", "visualScene", "imagePrompt", "videoPrompt", "audioScript", "textOverlay"],
            ),
        ),
    },
)


def _download_video(url: str, output_path: Path, api_key: str) -> Path:
    """Download video from URI to local path (requires API key auth)."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    headers = {"x-goog-api-key": api_key}
    with requests.get(url, headers=headers, stream=True, timeout=300) as r:
        r.raise_for_status()
        with open(output_path, "wb") as f:
            for chunk in r.iter_content(chunk_size=8192):
                if chunk:
                    f.write(chunk)
    return output_path


def translate_error(exc: Exception) -> AdStoryError:
    """Map a vendor exception onto the project's error taxonomy."""
    if isinstance(exc, AdStoryError):
        return exc
    message = str(exc)
    if isinstance(exc, genai_errors.APIError):
        message = exc.message or message
        if exc.code == 404 or _NOT_FOUND_MARKER in message:
            return ResourceNotFound(message)
        if exc.code in (401, 403) or any(m in message for m in _BAD_KEY_MARKERS):
            return ProviderUnavailable(message)
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        if exc.response.status_code == 404:
            return ResourceNotFound(f"Video download failed: {message}")
        return ProviderRequestFailed(f"Video download failed: {message}")
    return ProviderRequestFailed(message)


@contextmanager
def _vendor_errors(what: str) -> Iterator[None]:
    try:
        yield
    except AdStoryError:
        raise
    except (genai_errors.APIError, requests.RequestException) as exc:
        err = translate_error(exc)
        log.warning("Gemini %s failed: %s", what, err)
        raise err from exc


def _parts(images: list[ReferenceImage]) -> list[types.Part]:
    return [types.Part.from_bytes(data=img.data, mime_type=img.mime_type) for img in images]


def _inline_data(response: types.GenerateContentResponse) -> bytes | None:
    for candidate in response.candidates or []:
        if candidate.content is None:
            continue
        for part in candidate.content.parts or []:
            if part.inline_data is not None and part.inline_data.data:
                return part.inline_data.data
    return None


class GeminiProvider:
    """GenerationProvider backed by the Gemini API.

    ``key_source`` is called before every request, so a key saved in
    settings takes effect immediately; it raises ProviderUnavailable when no
    key is configured.
    """

    def __init__(self, key_source: Callable[[], str]) -> None:
        self._key_source = key_source

    def _client(self) -> genai.Client:
        return genai.Client(api_key=self._key_source())

    async def generate_plan(self, prompt: str, images: list[ReferenceImage]) -> str:
        client = self._client()
        log.info("Drafting ad plan from %d image(s)", len(images))
        with _vendor_errors("plan"):
            response = await client.aio.models.generate_content(
                model=PLAN_MODEL,
                contents=[*_parts(images), prompt],
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=PLAN_SCHEMA,
                ),
            )
        return response.text or "{}"

    async def generate_image(
        self,
        prompt: str,
        reference_images: list[ReferenceImage],
        aspect_ratio: str,
        style: ContentStyle,
    ) -> bytes:
        client = self._client()
        log.info("Generating %s image (%s): %s", style.value, aspect_ratio, prompt[:80])
        with _vendor_errors("image"):
            response = await client.aio.models.generate_content(
                model=IMAGE_MODEL,
                contents=[*_parts(reference_images[:2]), prompt],
                config=types.GenerateContentConfig(
                    image_config=types.ImageConfig(aspect_ratio=aspect_ratio),
                ),
            )
        data = _inline_data(response)
        if not data:
            raise ProviderRequestFailed("Gemini returned no image data.")
        return data

    async def start_video_job(
        self, prompt: str, source_image: bytes, aspect_ratio: str
    ) -> types.GenerateVideosOperation:
        client = self._client()
        log.info("Submitting Veo job (%s): %s", aspect_ratio, prompt[:80])
        with _vendor_errors("video submit"):
            operation = await client.aio.models.generate_videos(
                model=VIDEO_MODEL,
                prompt=prompt,
                image=types.Image(image_bytes=source_image, mime_type="image/png"),
                config=types.GenerateVideosConfig(
                    number_of_videos=1,
                    resolution=VIDEO_RESOLUTION,
                    aspect_ratio=aspect_ratio,
                ),
            )
        log.info("Veo job submitted: %s", operation.name)
        return operation

    async def poll_video_job(self, handle: types.GenerateVideosOperation) -> VideoJobStatus:
        client = self._client()
        with _vendor_errors("video poll"):
            operation = await client.aio.operations.get(handle)
        if not operation.done:
            return VideoJobStatus(done=False)
        if operation.error:
            return VideoJobStatus(done=True, error=f"Veo generation failed: {operation.error}")

        uri = None
        # response and result both hold GenerateVideosResponse; prefer response
        video_response = operation.response or getattr(operation, "result", None)
        generated = getattr(video_response, "generated_videos", None)
        if generated and generated[0].video is not None:
            uri = generated[0].video.uri
        return VideoJobStatus(done=True, media_uri=uri)

    async def download_video(self, media_uri: str, output_path: Path) -> Path:
        api_key = self._key_source()
        log.info("Downloading Veo video %s -> %s", media_uri, output_path)
        with _vendor_errors("video download"):
            return await asyncio.to_thread(_download_video, media_uri, output_path, api_key)

    async def generate_speech(self, text: str, voice: str) -> bytes:
        client = self._client()
        log.info("Generating speech (%s): %s", voice, text[:60])
        with _vendor_errors("speech"):
            response = await client.aio.models.generate_content(
                model=TTS_MODEL,
                contents=text,
                config=types.GenerateContentConfig(
                    response_modalities=["AUDIO"],
                    speech_config=types.SpeechConfig(
                        voice_config=types.VoiceConfig(
                            prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice),
                        ),
                    ),
                ),
            )
        data = _inline_data(response)
        if not data:
            raise ProviderRequestFailed("Gemini returned no speech audio.")
        return data
