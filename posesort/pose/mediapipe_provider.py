from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, List, Optional

from posesort.pose.base import PoseSource
from posesort.pose.topology import COCO17, PoseTopology
from posesort.pose.types import Keypoint, PoseSample

logger = logging.getLogger(__name__)


class MediaPipePoseSource(PoseSource):
	"""
	MediaPipe Pose source that outputs the canonical COCO-17 keypoint set.

	Notes:
	- MediaPipe uses normalized coordinates; we convert to pixel space.
	- `visibility` is used as score (best-effort).
	- MediaPipe is single-person, so at most one candidate is returned.
	- Inference is blocking; it runs in the default executor so the event loop
	  keeps serving timer ticks and HTTP requests.
	"""

	def __init__(
		self,
		model_complexity: int = 1,
		min_detection_confidence: float = 0.5,
		min_tracking_confidence: float = 0.5,
	) -> None:
		try:
			import mediapipe as mp  # type: ignore
		except Exception as e:
			raise RuntimeError(
				"MediaPipe is not installed. Install pose deps with: pip install mediapipe"
			) from e

		self._mp = mp
		self._model_complexity = int(model_complexity)
		self._min_det = float(min_detection_confidence)
		self._min_trk = float(min_tracking_confidence)
		self._pose: Optional[Any] = None
		# mediapipe graphs are not safe to call from two executor threads at once.
		self._lock = threading.Lock()

	def name(self) -> str:
		return "mediapipe_pose"

	@property
	def topology(self) -> PoseTopology:
		return COCO17

	def _build(self) -> Any:
		return self._mp.solutions.pose.Pose(
			static_image_mode=False,
			model_complexity=self._model_complexity,
			enable_segmentation=False,
			smooth_landmarks=True,
			min_detection_confidence=self._min_det,
			min_tracking_confidence=self._min_trk,
		)

	async def load(self) -> None:
		if self._pose is not None:
			return
		loop = asyncio.get_running_loop()
		# Graph construction downloads/initialises model assets; keep it off the loop.
		self._pose = await loop.run_in_executor(None, self._build)
		logger.info("[Pose] %s ready (complexity=%d)", self.name(), self._model_complexity)

	async def estimate(self, rgb) -> List[PoseSample]:
		if self._pose is None:
			raise RuntimeError("pose model not loaded")
		loop = asyncio.get_running_loop()
		return await loop.run_in_executor(None, self._infer, rgb)

	def _infer(self, rgb) -> List[PoseSample]:
		# rgb: HxWx3
		h, w = int(rgb.shape[0]), int(rgb.shape[1])
		with self._lock:
			pose = self._pose
			if pose is None:
				# closed while this call waited in the executor
				return []
			res = pose.process(rgb)
		if not res or not getattr(res, "pose_landmarks", None):
			return []

		lm = res.pose_landmarks.landmark
		# Map COCO names using MediaPipe PoseLandmark indices
		PL = self._mp.solutions.pose.PoseLandmark
		keypoints: List[Keypoint] = []
		for name in COCO17.keypoint_names:
			p = lm[int(PL[name.upper()])]
			keypoints.append(
				Keypoint(
					name=name,
					x=float(p.x) * float(w),
					y=float(p.y) * float(h),
					score=float(getattr(p, "visibility", 0.0) or 0.0),
				)
			)
		return [PoseSample(backend=self.name(), width=w, height=h, keypoints=tuple(keypoints))]

	def close(self) -> None:
		# Waits for an in-flight process() so the graph is never closed under it.
		with self._lock:
			pose, self._pose = self._pose, None
			if pose is None:
				return
			try:
				pose.close()
			except Exception as e:
				logger.debug("[Pose] close failed: %r", e)
