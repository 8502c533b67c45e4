"""Voice preview and selectable-options routes."""
from __future__ import annotations

from litestar import Response, get
from litestar.exceptions import NotFoundException

from adstory.audio import pcm_to_wav
from adstory.config import ASPECT_RATIOS
from adstory.models import SUPPORTED_LANGUAGES, ContentStyle, VoiceCharacter
from webui.backend.session import StudioSession


@get("/api/voices")
async def list_voices() -> list[str]:
    return [v.value for v in VoiceCharacter]


@get("/api/options")
async def list_options() -> dict:
    """Everything the project form lets the user pick from."""
    return {
        "styles": [s.value for s in ContentStyle],
        "languages": [{"code": code, "label": label} for code, label in SUPPORTED_LANGUAGES],
        "aspect_ratios": ASPECT_RATIOS,
        "voices": [v.value for v in VoiceCharacter],
    }


@get("/api/voices/{voice:str}/preview")
async def preview_voice(voice: str, studio_session: StudioSession) -> Response:
    """Speak the sample line in the given voice and return it as WAV."""
    try:
        character = VoiceCharacter(voice)
    except ValueError:
        raise NotFoundException(f"Unknown voice {voice!r}") from None
    pcm = await studio_session.studio.preview_voice(character.value)
    return Response(content=pcm_to_wav(pcm), media_type="audio/wav")
