from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from posesort.pose.topology import PoseTopology
from posesort.pose.types import PoseSample


class PoseSource(ABC):
	"""
	Model adapter interface.

	Implementations take an RGB image (H,W,3 uint8) and return zero or more pose
	candidates, best first. `estimate` may raise; callers treat that as a missed
	frame.
	"""

	@abstractmethod
	def name(self) -> str: ...

	@property
	@abstractmethod
	def topology(self) -> PoseTopology: ...

	@abstractmethod
	async def load(self) -> None:
		"""Prepare the model. The session marks the model ready once this returns."""
		...

	@abstractmethod
	async def estimate(self, rgb) -> List[PoseSample]: ...

	@abstractmethod
	def close(self) -> None: ...
