"""Shared fakes: no camera, no model, no network."""
import asyncio
import random
from typing import Any, Callable, Dict, List, Optional

import numpy as np
import pytest
from PIL import Image

from posesort.artwork import LoadedArtwork
from posesort.catalog import Catalog, Category, Item
from posesort.overlay import DrawingSurface
from posesort.pose.base import PoseSource
from posesort.pose.topology import COCO17, PoseTopology
from posesort.pose.types import Keypoint, PoseSample
from posesort.video_source import VideoSource


class SeqRandom(random.Random):
	"""choice() returns items by a scripted index sequence, then index 0 forever."""

	def __init__(self, indices: Optional[List[int]] = None) -> None:
		super().__init__(0)
		self.indices = list(indices or [])

	def choice(self, seq):
		i = self.indices.pop(0) if self.indices else 0
		return seq[i]


class RecordingSurface(DrawingSurface):
	def __init__(self, width: int = 640, height: int = 480) -> None:
		self._w = width
		self._h = height
		self.calls: List[tuple] = []

	@property
	def width(self) -> int:
		return self._w

	@property
	def height(self) -> int:
		return self._h

	def clear(self) -> None:
		self.calls.append(("clear",))

	def draw_image(self, image: Any, x: int, y: int, w: int, h: int) -> None:
		self.calls.append(("image", image, x, y, w, h))

	def draw_circle(self, x: int, y: int, radius: int, color: str) -> None:
		self.calls.append(("circle", x, y, radius, color))

	def draw_line(self, x0: int, y0: int, x1: int, y1: int, width: int, color: str) -> None:
		self.calls.append(("line", x0, y0, x1, y1, width, color))

	def of(self, kind: str) -> List[tuple]:
		return [c for c in self.calls if c[0] == kind]


class FakeVideoSource(VideoSource):
	def __init__(self, frame: Optional[Any] = None, ready: bool = False) -> None:
		self.frame = frame if frame is not None else np.zeros((480, 640, 3), dtype=np.uint8)
		self._ready = ready
		self._callbacks: List[Callable[[], None]] = []
		self.started = False
		self.stopped = False

	def name(self) -> str:
		return "fake"

	def start(self) -> None:
		self.started = True

	def stop(self) -> None:
		self.stopped = True

	def is_ready(self) -> bool:
		return self._ready

	def on_ready(self, callback: Callable[[], None]) -> None:
		if self._ready:
			callback()
		else:
			self._callbacks.append(callback)

	def fire_ready(self) -> None:
		self._ready = True
		callbacks, self._callbacks = self._callbacks, []
		for cb in callbacks:
			cb()

	def latest_frame(self) -> Optional[Any]:
		return self.frame

	def get_status(self) -> Dict[str, Any]:
		return {"backend": "fake", "running": self.started and not self.stopped, "ready": self._ready}


def make_pose(scores: Optional[Dict[str, float]] = None, default: float = 0.9, width: int = 640, height: int = 480) -> PoseSample:
	"""COCO-17 pose with keypoint i at (100 + 10*i, 200 + 5*i)."""
	scores = scores or {}
	kps = tuple(
		Keypoint(name=n, x=100.0 + 10 * i, y=200.0 + 5 * i, score=scores.get(n, default))
		for i, n in enumerate(COCO17.keypoint_names)
	)
	return PoseSample(backend="fake", width=width, height=height, keypoints=kps)


class FakePoseSource(PoseSource):
	"""Returns `poses` (or raises `error`) for every estimate; optional gate to hold estimates open."""

	def __init__(self, poses: Optional[List[PoseSample]] = None, error: Optional[Exception] = None) -> None:
		self.poses = [make_pose()] if poses is None else poses
		self.error = error
		self.gate: Optional[asyncio.Event] = None
		self.calls = 0
		self.loaded = False
		self.closed = False
		self.load_error: Optional[Exception] = None

	def name(self) -> str:
		return "fake_pose"

	@property
	def topology(self) -> PoseTopology:
		return COCO17

	async def load(self) -> None:
		if self.load_error is not None:
			raise self.load_error
		self.loaded = True

	async def estimate(self, rgb) -> List[PoseSample]:
		self.calls += 1
		if self.gate is not None:
			await self.gate.wait()
		if self.error is not None:
			raise self.error
		return list(self.poses)

	def close(self) -> None:
		self.closed = True


def make_artwork(url: str = "mem://art", color=(255, 0, 0, 255)) -> LoadedArtwork:
	return LoadedArtwork(url=url, image=Image.new("RGBA", (8, 8), color))


class FakeArtworkLoader:
	"""
	Resolves immediately unless `manual` is set, in which case each load waits
	on a future the test resolves via `resolve(url, artwork)`.
	"""

	def __init__(self, manual: bool = False, fail: bool = False) -> None:
		self.manual = manual
		self.fail = fail
		self.requested: List[str] = []
		self._futures: Dict[str, List[asyncio.Future]] = {}

	async def load(self, url: str) -> Optional[LoadedArtwork]:
		self.requested.append(url)
		if self.fail:
			return None
		if not self.manual:
			return make_artwork(url)
		fut = asyncio.get_running_loop().create_future()
		self._futures.setdefault(url, []).append(fut)
		return await fut

	def resolve(self, url: str, artwork: Optional[LoadedArtwork] = None) -> None:
		fut = self._futures[url].pop(0)
		fut.set_result(artwork if artwork is not None else make_artwork(url))


@pytest.fixture
def two_item_catalog() -> Catalog:
	cats = [
		Category("recycle", "Recyclable", "#3B82F6"),
		Category("wet", "Wet", "#10B981"),
		Category("hazardous", "Hazardous", "#EF4444"),
	]
	items = [
		Item("A", "recycle", "mem://a"),
		Item("B", "wet", "mem://b"),
	]
	return Catalog(cats, items)
