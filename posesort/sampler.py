"""
Pose sampler loop.

One asyncio task ticks at roughly display rate. Each tick may launch a single
pose estimate on the latest video frame; the estimate runs as its own task so a
slow model never stalls the loop, the round timer or HTTP handlers. Only one
estimate is in flight at a time, which keeps overlay frames in order.

Successful estimates (at least one pose) advance a frame counter; the overlay is
rendered only when the counter is a multiple of the decimation factor K.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

from posesort.artwork import LoadedArtwork
from posesort.overlay import DrawingSurface, OverlayRenderer, PillowSurface
from posesort.pose.base import PoseSource
from posesort.video_source import VideoSource, frame_size

logger = logging.getLogger(__name__)

ArtworkProvider = Callable[[], Optional[LoadedArtwork]]
SurfaceFactory = Callable[[int, int], DrawingSurface]
RenderCallback = Callable[[DrawingSurface], None]


class PoseSampler:
	def __init__(
		self,
		video: VideoSource,
		pose_source: PoseSource,
		renderer: OverlayRenderer,
		artwork: ArtworkProvider,
		*,
		decimation: int = 1,
		tick_seconds: float = 1.0 / 30.0,
		surface_factory: SurfaceFactory = PillowSurface,
		on_render: Optional[RenderCallback] = None,
	) -> None:
		if int(decimation) < 1:
			raise ValueError("decimation must be >= 1")
		self._video = video
		self._pose = pose_source
		self._renderer = renderer
		self._artwork = artwork
		self.decimation = int(decimation)
		self._tick_seconds = float(tick_seconds)
		self._surface_factory = surface_factory
		self._on_render = on_render

		self.frame_counter = 0
		self.render_count = 0
		self.failures = 0
		self._loop_task: Optional[asyncio.Task] = None
		self._pending: Optional[asyncio.Task] = None

	@property
	def running(self) -> bool:
		return self._loop_task is not None and not self._loop_task.done()

	@property
	def in_flight(self) -> bool:
		return self._pending is not None and not self._pending.done()

	def start(self) -> None:
		if self.running:
			return
		self._loop_task = asyncio.get_running_loop().create_task(self._run(), name="pose-sampler")
		logger.info("[Pose] sampler started (K=%d)", self.decimation)

	async def stop(self) -> None:
		loop_task, self._loop_task = self._loop_task, None
		pending, self._pending = self._pending, None
		for task in (loop_task, pending):
			if task is None or task.done():
				continue
			task.cancel()
			try:
				await task
			except asyncio.CancelledError:
				pass
		if loop_task is not None:
			logger.info("[Pose] sampler stopped after %d renders", self.render_count)

	async def _run(self) -> None:
		while True:
			self.tick()
			await asyncio.sleep(self._tick_seconds)

	def tick(self) -> Optional[asyncio.Task]:
		"""
		One scheduling tick. Returns the estimate task it launched, or None when
		the previous estimate is still running or there is no usable frame.
		"""
		if self.in_flight:
			return None
		frame = self._video.latest_frame()
		w, h = frame_size(frame)
		if w <= 0 or h <= 0:
			return None
		self._pending = asyncio.get_running_loop().create_task(self._estimate_and_render(frame))
		return self._pending

	async def _estimate_and_render(self, frame: Any) -> None:
		try:
			poses = await self._pose.estimate(frame)
		except asyncio.CancelledError:
			raise
		except Exception as e:
			self.failures += 1
			logger.debug("[Pose] estimate failed: %r", e)
			return
		if not poses:
			return

		render = self.frame_counter % self.decimation == 0
		self.frame_counter += 1
		if not render:
			return

		h, w = int(frame.shape[0]), int(frame.shape[1])
		try:
			surface = self._surface_factory(w, h)
			self._renderer.render(surface, frame, poses[0].keypoints, self._artwork())
			if self._on_render is not None:
				self._on_render(surface)
		except Exception as e:
			self.failures += 1
			logger.debug("[Pose] render failed: %r", e)
			return
		self.render_count += 1
