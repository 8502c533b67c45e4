import io
import json
import shutil

import pytest
from PIL import Image

from adstory.models import ContentStyle, ReferenceImage
from adstory.placeholder import PlaceholderProvider
from schemas import AdPlanResponse


@pytest.mark.asyncio
async def test_placeholder_plan_is_valid():
    raw = await PlaceholderProvider().generate_plan("prompt", [ReferenceImage(b"p")])
    plan = AdPlanResponse.model_validate(json.loads(raw))
    assert [row.no for row in plan.scenes] == [1, 2, 3]


@pytest.mark.asyncio
async def test_placeholder_image_matches_aspect():
    data = await PlaceholderProvider().generate_image("A bottle", [], "9:16", ContentStyle.CINEMATIC)
    img = Image.open(io.BytesIO(data))
    assert img.format == "PNG"
    assert img.size == (720, 1280)


@pytest.mark.asyncio
async def test_placeholder_speech_is_pcm16():
    pcm = await PlaceholderProvider().generate_speech("one two three four", "Puck")
    assert len(pcm) % 2 == 0
    assert len(pcm) >= 24000 * 2  # at least a second


@pytest.mark.asyncio
async def test_placeholder_video_job_needs_polls():
    provider = PlaceholderProvider(polls_until_done=2)
    handle = await provider.start_video_job("spin", b"png", "16:9")
    assert not (await provider.poll_video_job(handle)).done
    status = await provider.poll_video_job(handle)
    assert status.done
    assert status.media_uri == f"placeholder://{handle}"


@pytest.mark.skipif(shutil.which("ffmpeg") is None, reason="ffmpeg not installed")
@pytest.mark.asyncio
async def test_placeholder_video_renders(tmp_path):
    provider = PlaceholderProvider(polls_until_done=1)
    still = await provider.generate_image("A bottle", [], "16:9", ContentStyle.CINEMATIC)
    handle = await provider.start_video_job("spin", still, "16:9")
    status = await provider.poll_video_job(handle)
    path = await provider.download_video(status.media_uri, tmp_path / "clip.mp4")
    assert path.exists()
    assert path.stat().st_size > 0


@pytest.mark.asyncio
async def test_overlapping_video_jobs_keep_their_own_stills(monkeypatch, tmp_path):
    rendered = []
    monkeypatch.setattr(
        "adstory.placeholder._placeholder_video",
        lambda image, path: rendered.append(image) or path,
    )
    provider = PlaceholderProvider(polls_until_done=1)

    first = await provider.start_video_job("spin", b"still-1", "16:9")
    second = await provider.start_video_job("spin", b"still-2", "16:9")
    done = await provider.poll_video_job(first)
    await provider.download_video(done.media_uri, tmp_path / "a.mp4")
    third = await provider.start_video_job("spin", b"still-3", "16:9")

    assert len({first, second, third}) == 3
    for handle in (second, third):
        status = await provider.poll_video_job(handle)
        await provider.download_video(status.media_uri, tmp_path / f"{handle}.mp4")
    assert rendered == [b"still-1", b"still-2", b"still-3"]
