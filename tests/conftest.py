import asyncio
import json
from collections import Counter
from pathlib import Path

import pytest

from adstory.jobs import JobRunner
from adstory.models import AdPlan, Scene
from adstory.orchestrator import PlanOrchestrator
from adstory.provider import VideoJobStatus
from adstory.store import AssetStore

PLAN_JSON = {
    "contentTitle": "Glow Serum",
    "killerHook": "Your skin, but brighter.",
    "productDescription": "A vitamin C serum in a glass dropper bottle.",
    "scenes": [
        {
            "no": 1,
            "visualScene": "Bottle on marble",
            "imagePrompt": "serum bottle on marble",
            "videoPrompt": "slow dolly in",
            "audioScript": "Meet your new routine.",
            "textOverlay": "NEW",
        },
        {
            "no": 2,
            "visualScene": "Model applying serum",
            "imagePrompt": "woman applying serum",
            "videoPrompt": "handheld close-up",
            "audioScript": "Three drops a day.",
            "textOverlay": "EASY",
        },
        {
            "no": 3,
            "visualScene": "End card",
            "imagePrompt": "bottle on gradient",
            "videoPrompt": "gentle zoom out",
            "audioScript": "Shop now.",
            "textOverlay": "SHOP NOW",
        },
    ],
}


class FakeProvider:
    """In-memory provider that counts calls and can be held or made to fail."""

    def __init__(self) -> None:
        self.calls = Counter()
        self.image_prompts: list[str] = []
        self.speech_voices: list[str] = []
        self.video_prompts: list[str] = []
        # while set to an unset Event, image/speech calls block on it
        self.gate: asyncio.Event | None = None
        # prompt substring -> exception raised by generate_image
        self.image_failures: dict[str, Exception] = {}
        self.speech_error: Exception | None = None
        self.video_statuses: list[VideoJobStatus] = [
            VideoJobStatus(done=False),
            VideoJobStatus(done=False),
            VideoJobStatus(done=True, media_uri="mem://video"),
        ]
        self.poll_error: Exception | None = None
        self.plan_text = json.dumps(PLAN_JSON)

    async def _wait(self) -> None:
        if self.gate is not None:
            await self.gate.wait()

    async def generate_plan(self, prompt, images):
        self.calls["plan"] += 1
        return self.plan_text

    async def generate_image(self, prompt, reference_images, aspect_ratio, style):
        self.calls["image"] += 1
        n = self.calls["image"]
        self.image_prompts.append(prompt)
        await self._wait()
        for needle, exc in self.image_failures.items():
            if needle in prompt:
                raise exc
        return b"image-%d" % n

    async def start_video_job(self, prompt, source_image, aspect_ratio):
        self.calls["video"] += 1
        self.video_prompts.append(prompt)
        return {"source": source_image, "aspect": aspect_ratio}

    async def poll_video_job(self, handle):
        self.calls["poll"] += 1
        if self.poll_error is not None:
            raise self.poll_error
        if len(self.video_statuses) > 1:
            return self.video_statuses.pop(0)
        return self.video_statuses[0]

    async def download_video(self, media_uri, output_path: Path):
        self.calls["download"] += 1
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(b"mp4:" + media_uri.encode())
        return output_path

    async def generate_speech(self, text, voice):
        self.calls["speech"] += 1
        self.speech_voices.append(voice)
        await self._wait()
        if self.speech_error is not None:
            raise self.speech_error
        return b"\x00\x01" * 100


class SleepRecorder:
    """Stands in for asyncio.sleep in the poll loop, without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


def make_plan(n: int = 3) -> AdPlan:
    return AdPlan(
        title="Test Ad",
        hook="Hook",
        product_description="Product",
        scenes=tuple(
            Scene(
                index=i,
                image_prompt=f"scene {i} still",
                video_prompt=f"scene {i} motion",
                audio_script=f"scene {i} line",
            )
            for i in range(n)
        ),
    )


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def sleeps():
    return SleepRecorder()


@pytest.fixture
def store():
    return AssetStore()


@pytest.fixture
def runner(store, provider, sleeps, tmp_path):
    return JobRunner(
        store,
        provider,
        tmp_path / "output",
        poll_interval=10.0,
        max_polls=5,
        progress_messages=[],
        sleep=sleeps,
    )


@pytest.fixture
def notices():
    return []


@pytest.fixture
def orchestrator(store, runner, notices):
    return PlanOrchestrator(store, runner, notify=notices.append)


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point the config file at a temp dir and clear key env vars."""
    import adstory.config as config_mod

    monkeypatch.setattr(config_mod, "CONFIG_DIR", tmp_path / ".adstory")
    monkeypatch.setattr(config_mod, "CONFIG_FILE", tmp_path / ".adstory" / "config.json")
    for name in config_mod.ENV_API_KEYS:
        monkeypatch.delenv(name, raising=False)
    return config_mod
