import pytest

from adstory.audio import WAV_HEADER_SIZE
from adstory.config import Config
from adstory.models import AssetKind, ProjectSettings, ReferenceImage
from adstory.studio import Studio


@pytest.fixture
def studio(provider, sleeps, tmp_path):
    config = Config(output_dir=tmp_path / "out", video_poll_interval=2.0, video_max_polls=4)
    return Studio(config, provider, sleep=sleeps)


@pytest.mark.asyncio
async def test_create_project_drafts_and_starts_images(studio, provider):
    plan = await studio.create_project(ProjectSettings(product_images=[ReferenceImage(b"p")]))
    await studio.orchestrator.join()

    assert plan.content_title == "Glow Serum"
    assert provider.calls["plan"] == 1
    assert provider.calls["image"] == 3
    assert all(studio.store.get(i, AssetKind.IMAGE).is_ready for i in range(3))


@pytest.mark.asyncio
async def test_runner_uses_config_polling(studio, sleeps):
    await studio.create_project(ProjectSettings(product_images=[ReferenceImage(b"p")]))
    await studio.orchestrator.join()
    await studio.orchestrator.animate(0)
    assert sleeps.delays == [2.0, 2.0, 2.0]


@pytest.mark.asyncio
async def test_export_and_save(studio, tmp_path):
    await studio.create_project(ProjectSettings(product_images=[ReferenceImage(b"p")]))
    await studio.orchestrator.join()
    await studio.orchestrator.narrate(1)

    name, wav = studio.export_file(1, AssetKind.AUDIO)
    assert name == "adstory_vo_2.wav"
    assert wav[:4] == b"RIFF"
    assert len(wav) == WAV_HEADER_SIZE + 200

    with pytest.raises(LookupError):
        studio.export_file(0, AssetKind.VIDEO)

    written = studio.save_outputs()
    assert sorted(p.name for p in written) == [
        "adstory_image_1.png",
        "adstory_image_2.png",
        "adstory_image_3.png",
        "adstory_vo_2.wav",
    ]
    assert all(p.parent == tmp_path / "out" for p in written)


@pytest.mark.asyncio
async def test_preview_voice_plays_through_sink(provider, tmp_path):
    played = []
    studio = Studio(
        Config(output_dir=tmp_path),
        provider,
        playback_sink=lambda wave, rate: played.append(rate),
    )
    pcm = await studio.preview_voice("Fenrir")
    assert provider.speech_voices == ["Fenrir"]
    assert len(pcm) == 200
    assert played == [24000]
