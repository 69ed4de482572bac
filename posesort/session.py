"""
GameSession wires the round state machine, the round timer, the pose sampler and
the readiness lifecycle together for one player in front of one camera.

Lifecycle:
	start()  - starts the camera and loads the pose model in the background.
	           When the model is ready the first round begins; when both the
	           model and the video are ready and the current item's artwork has
	           loaded, the pose sampler starts and keeps running until close().
	close()  - cancels the timer, the sampler and pending artwork loads, then
	           releases the camera and the model. Safe to call more than once.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Callable, List, Optional, Tuple

from posesort.artwork import ArtworkLoader, LoadedArtwork
from posesort.catalog import Catalog, catalog_from_config
from posesort.config import AppConfig
from posesort.lifecycle import SessionLifecycle
from posesort.overlay import DrawingSurface, OverlayRenderer, OverlayStyle, PillowSurface
from posesort.pose.base import PoseSource
from posesort.round_state import AnswerOutcome, RoundSnapshot, RoundStateMachine
from posesort.round_timer import RoundTimer
from posesort.sampler import PoseSampler, SurfaceFactory
from posesort.video_source import VideoSource

logger = logging.getLogger(__name__)

STATUS_LOADING_MODEL = "Loading model..."
STATUS_MODEL_FAILED = "Model failed to load"
STATUS_INIT_VIDEO = "Initializing video..."
STATUS_PLAYING = "Sort the waste!"
STATUS_GAME_OVER = "Game over"


class GameSession:
	def __init__(
		self,
		cfg: AppConfig,
		*,
		video: VideoSource,
		pose_source: PoseSource,
		artwork_loader: Optional[ArtworkLoader] = None,
		catalog: Optional[Catalog] = None,
		rng: Optional[random.Random] = None,
		surface_factory: SurfaceFactory = PillowSurface,
	) -> None:
		self.cfg = cfg
		self.video = video
		self.pose_source = pose_source
		self.catalog = catalog or catalog_from_config(cfg.catalog.categories, cfg.catalog.items)

		self.lifecycle = SessionLifecycle()
		self.machine = RoundStateMachine(
			self.catalog,
			artwork_loader,
			round_seconds=cfg.game.round_seconds,
			rng=rng,
		)
		self.timer = RoundTimer(self.machine, interval=cfg.game.timer_interval_seconds)
		self.renderer = OverlayRenderer(OverlayStyle.from_config(cfg.overlay), topology=pose_source.topology)
		self.sampler = PoseSampler(
			video,
			pose_source,
			self.renderer,
			self._current_artwork,
			decimation=cfg.sampler.decimation,
			tick_seconds=cfg.sampler.tick_seconds,
			surface_factory=surface_factory,
			on_render=self._publish,
		)

		self._listeners: List[Callable[[RoundSnapshot], None]] = []
		self._model_task: Optional[asyncio.Task] = None
		self._model_error: Optional[str] = None
		self._started = False
		self._closed = False
		self._latest_jpeg: Optional[bytes] = None
		self._latest_jpeg_t: Optional[float] = None

		self.machine.add_listener(self._on_round_change)
		self.lifecycle.add_observer(self._on_readiness_change)

	# ----------------------------------------------------------------- status

	@property
	def status(self) -> str:
		if self.machine.is_game_over:
			return STATUS_GAME_OVER
		if self._model_error is not None:
			return STATUS_MODEL_FAILED
		if not self.lifecycle.model_ready:
			return STATUS_LOADING_MODEL
		if not self.lifecycle.video_ready:
			return STATUS_INIT_VIDEO
		return STATUS_PLAYING

	def snapshot(self) -> RoundSnapshot:
		return self.machine.snapshot(status=self.status)

	def add_listener(self, listener: Callable[[RoundSnapshot], None]) -> None:
		"""Called with a fresh snapshot after every round or readiness transition."""
		self._listeners.append(listener)

	# -------------------------------------------------------------- lifecycle

	async def start(self) -> None:
		if self._started:
			return
		self._started = True
		loop = asyncio.get_running_loop()
		# The capture thread fires on_ready; hop back onto the loop before touching state.
		self.video.on_ready(lambda: loop.call_soon_threadsafe(self._on_video_ready))
		try:
			self.video.start()
		except Exception:
			logger.exception("[Session] video source %s failed to start", self.video.name())
		self._model_task = loop.create_task(self._load_model(), name="pose-model-load")

	async def wait_model_loaded(self) -> None:
		if self._model_task is not None:
			await asyncio.shield(self._model_task)

	async def _load_model(self) -> None:
		logger.info("[Session] loading pose model %s", self.pose_source.name())
		try:
			await self.pose_source.load()
		except asyncio.CancelledError:
			raise
		except Exception as e:
			self._model_error = repr(e)
			logger.exception("[Session] pose model failed to load")
			self._emit()
			return
		self.lifecycle.mark_model_ready()
		self.begin()

	def _on_video_ready(self) -> None:
		if self._closed:
			return
		self.lifecycle.mark_video_ready()

	async def close(self) -> None:
		if self._closed:
			return
		self._closed = True
		self.timer.cancel()
		await self.sampler.stop()
		task, self._model_task = self._model_task, None
		if task is not None and not task.done():
			task.cancel()
			try:
				await task
			except asyncio.CancelledError:
				pass
		self.machine.cancel_pending_artwork()
		try:
			self.video.stop()
		except Exception:
			logger.exception("[Session] video source failed to stop")
		try:
			self.pose_source.close()
		except Exception:
			logger.exception("[Session] pose source failed to close")
		logger.info("[Session] closed")

	# ------------------------------------------------------------ player input

	def begin(self) -> None:
		self.machine.begin()
		self.timer.arm()

	def restart(self) -> None:
		self.machine.restart()
		self.timer.arm()

	def answer(self, category: str) -> Optional[AnswerOutcome]:
		return self.machine.answer(category)

	# ------------------------------------------------------------------ frames

	def get_latest_jpeg(self) -> Tuple[Optional[bytes], Optional[float]]:
		return self._latest_jpeg, self._latest_jpeg_t

	def _publish(self, surface: DrawingSurface) -> None:
		encode = getattr(surface, "encode_jpeg", None)
		if encode is None:
			return
		self._latest_jpeg = encode(self.cfg.sampler.jpeg_quality)
		self._latest_jpeg_t = time.time()

	def _current_artwork(self) -> Optional[LoadedArtwork]:
		item = self.machine.current_item
		return item.artwork if item is not None else None

	# --------------------------------------------------------------- internals

	def _maybe_start_sampler(self) -> None:
		if self._closed or self.sampler.running:
			return
		if not self.lifecycle.is_ready():
			return
		item = self.machine.current_item
		if item is None or not item.renderable:
			return
		self.sampler.start()

	def _on_readiness_change(self) -> None:
		self._maybe_start_sampler()
		self._emit()

	def _on_round_change(self, _snap: RoundSnapshot) -> None:
		self._maybe_start_sampler()
		self._emit()

	def _emit(self) -> None:
		snap = self.snapshot()
		for listener in list(self._listeners):
			try:
				listener(snap)
			except Exception:
				logger.exception("[Session] listener failed")
