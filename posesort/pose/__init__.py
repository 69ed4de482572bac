"""
Pose estimation utilities.

This package defines a model-agnostic PoseSample type and source adapters
(e.g., MediaPipe Pose) so the pose stack can be swapped without touching the game.
"""

from posesort.config import PoseConfig
from posesort.pose.base import PoseSource


def get_pose_source(cfg: PoseConfig) -> PoseSource:
	backend = (cfg.backend or "mediapipe").strip().lower()
	if backend not in ("mediapipe", "mp"):
		raise ValueError(f"Unknown pose backend: {cfg.backend!r}")
	from posesort.pose.mediapipe_provider import MediaPipePoseSource

	return MediaPipePoseSource(
		model_complexity=cfg.model_complexity,
		min_detection_confidence=cfg.min_detection_confidence,
		min_tracking_confidence=cfg.min_tracking_confidence,
	)
