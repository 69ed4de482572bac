from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


COCO17_NAMES: Tuple[str, ...] = (
	"nose",
	"left_eye",
	"right_eye",
	"left_ear",
	"right_ear",
	"left_shoulder",
	"right_shoulder",
	"left_elbow",
	"right_elbow",
	"left_wrist",
	"right_wrist",
	"left_hip",
	"right_hip",
	"left_knee",
	"right_knee",
	"left_ankle",
	"right_ankle",
)

# Skeleton edges between COCO-17 indices (same set MoveNet/PoseNet draw).
COCO17_ADJACENT_PAIRS: Tuple[Tuple[int, int], ...] = (
	(0, 1),
	(0, 2),
	(1, 3),
	(2, 4),
	(5, 6),
	(5, 7),
	(5, 11),
	(6, 8),
	(6, 12),
	(7, 9),
	(8, 10),
	(11, 12),
	(11, 13),
	(12, 14),
	(13, 15),
	(14, 16),
)


@dataclass(frozen=True)
class PoseTopology:
	"""
	Fixed, versioned keypoint layout of a pose model: names in output order and
	the adjacent pairs (by index) drawn as skeleton lines.
	"""

	name: str
	keypoint_names: Tuple[str, ...]
	adjacent_pairs: Tuple[Tuple[int, int], ...]

	def __post_init__(self) -> None:
		n = len(self.keypoint_names)
		for i, j in self.adjacent_pairs:
			if not (0 <= i < n and 0 <= j < n):
				raise ValueError(f"topology {self.name!r}: edge ({i}, {j}) out of range for {n} keypoints")

	def edges_for(self, n_keypoints: int) -> Tuple[Tuple[int, int], ...]:
		"""Edges whose both endpoints exist in a sample of `n_keypoints`."""
		if n_keypoints >= len(self.keypoint_names):
			return self.adjacent_pairs
		return tuple((i, j) for i, j in self.adjacent_pairs if i < n_keypoints and j < n_keypoints)


COCO17 = PoseTopology(name="coco17", keypoint_names=COCO17_NAMES, adjacent_pairs=COCO17_ADJACENT_PAIRS)
