from .ad_plan import AdPlanResponse, SceneRow

__all__ = [
    "AdPlanResponse", "SceneRow",
]
