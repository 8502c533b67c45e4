from pydantic import BaseModel, ConfigDict, Field
from typing import List

from adstory.models import AdPlan, Scene


class SceneRow(BaseModel):
    """One storyboard row as drafted by the plan model."""
    model_config = ConfigDict(populate_by_name=True)

    no: int = Field(..., description="1-based scene number")
    visual_scene: str = Field("", alias="visualScene")
    image_prompt: str = Field(..., alias="imagePrompt")
    video_prompt: str = Field(..., alias="videoPrompt")
    audio_script: str = Field(..., alias="audioScript")
    text_overlay: str = Field("", alias="textOverlay")


class AdPlanResponse(BaseModel):
    """Produced by the plan model, consumed by the orchestrator and the web UI."""
    model_config = ConfigDict(populate_by_name=True)

    content_title: str = Field("", alias="contentTitle")
    killer_hook: str = Field("", alias="killerHook", description="FOMO / curiosity / solution hook")
    product_description: str = Field("", alias="productDescription")
    scenes: List[SceneRow] = Field(default_factory=list)

    def to_plan(self) -> AdPlan:
        # scene order is the order the model returned, not the `no` field
        return AdPlan(
            title=self.content_title,
            hook=self.killer_hook,
            product_description=self.product_description,
            scenes=tuple(
                Scene(
                    index=i,
                    image_prompt=row.image_prompt,
                    video_prompt=row.video_prompt,
                    audio_script=row.audio_script,
                    visual_scene=row.visual_scene,
                    text_overlay=row.text_overlay,
                )
                for i, row in enumerate(self.scenes)
            ),
        )
