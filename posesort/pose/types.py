from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class Keypoint:
	"""
	A single 2D keypoint in pixel coordinates.
	"""

	name: str
	x: float
	y: float
	score: float  # confidence/visibility [0..1] best-effort


@dataclass(frozen=True)
class PoseSample:
	"""
	Model-agnostic pose output for one person in one video frame.

	- `keypoints` follows the ordering of the source's topology, so skeleton
	  edges can refer to keypoints by index.
	- Coordinates are in pixel space of the frame the estimate was taken on.
	"""

	backend: str
	width: int
	height: int
	keypoints: Tuple[Keypoint, ...] = field(default_factory=tuple)
