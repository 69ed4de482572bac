from __future__ import annotations

import logging
from typing import Callable, List

logger = logging.getLogger(__name__)


class SessionLifecycle:
	"""
	Readiness of the session's external collaborators.

	Each flag is set once and never reset. Observers are called after every
	flag transition; whichever transition completes last is the one that can
	start the pose sampler.
	"""

	def __init__(self) -> None:
		self._model_ready = False
		self._video_ready = False
		self._observers: List[Callable[[], None]] = []

	@property
	def model_ready(self) -> bool:
		return self._model_ready

	@property
	def video_ready(self) -> bool:
		return self._video_ready

	def is_ready(self) -> bool:
		return self._model_ready and self._video_ready

	def add_observer(self, cb: Callable[[], None]) -> None:
		self._observers.append(cb)

	def mark_model_ready(self) -> None:
		if self._model_ready:
			return
		self._model_ready = True
		logger.info("[Session] model ready")
		self._fire()

	def mark_video_ready(self) -> None:
		if self._video_ready:
			return
		self._video_ready = True
		logger.info("[Session] video ready")
		self._fire()

	def _fire(self) -> None:
		for cb in list(self._observers):
			try:
				cb()
			except Exception:
				logger.exception("[Session] readiness observer failed")
