from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from posesort.video_source import VideoSource

logger = logging.getLogger(__name__)


class OpenCvVideoSource(VideoSource):
	"""
	Webcam source built on cv2.VideoCapture.

	A daemon thread reads frames as fast as the camera delivers them and keeps
	only the latest one (converted to RGB). Readers never consume frames.

	Notes:
	- `opencv-python` is imported lazily so the rest of the app (and the tests)
	  work on machines without a camera stack.
	- Ready callbacks fire from the capture thread.
	"""

	def __init__(self, camera_index: int = 0, width: Optional[int] = None, height: Optional[int] = None) -> None:
		try:
			import cv2  # type: ignore
		except Exception as e:
			raise RuntimeError("OpenCV is not installed. Install with: pip install opencv-python") from e

		self._cv2 = cv2
		self._camera_index = int(camera_index)
		self._req_size = (width, height)

		self._lock = threading.Lock()
		self._running = False
		self._thread: Optional[threading.Thread] = None
		self._latest: Optional[Any] = None
		self._latest_t: Optional[float] = None
		self._frame_idx = 0
		self._last_error: Optional[str] = None

		self._ready = False
		self._ready_callbacks: List[Callable[[], None]] = []

	def name(self) -> str:
		return "opencv"

	def is_ready(self) -> bool:
		with self._lock:
			return self._ready

	def on_ready(self, callback: Callable[[], None]) -> None:
		with self._lock:
			already = self._ready
			if not already:
				self._ready_callbacks.append(callback)
		if already:
			callback()

	def latest_frame(self) -> Optional[Any]:
		with self._lock:
			return self._latest

	def get_status(self) -> Dict[str, Any]:
		with self._lock:
			shape = getattr(self._latest, "shape", None)
			return {
				"backend": self.name(),
				"camera_index": self._camera_index,
				"running": bool(self._running),
				"ready": bool(self._ready),
				"frame_idx": self._frame_idx,
				"t_last_frame": self._latest_t,
				"width": int(shape[1]) if shape is not None else None,
				"height": int(shape[0]) if shape is not None else None,
				"error": self._last_error,
			}

	def start(self) -> None:
		with self._lock:
			if self._running:
				return
			self._running = True
			self._last_error = None
		t = threading.Thread(target=self._run_capture_loop, name="opencv-capture", daemon=True)
		self._thread = t
		t.start()

	def stop(self) -> None:
		with self._lock:
			self._running = False
		t = self._thread
		if t is not None and t.is_alive() and t is not threading.current_thread():
			t.join(timeout=2.0)
		self._thread = None

	def _is_running(self) -> bool:
		with self._lock:
			return self._running

	def _run_capture_loop(self) -> None:
		cv2 = self._cv2
		cap = cv2.VideoCapture(self._camera_index)
		try:
			if not cap.isOpened():
				with self._lock:
					self._last_error = f"could not open camera {self._camera_index}"
					self._running = False
				logger.error("[Video] could not open camera %d", self._camera_index)
				return
			w, h = self._req_size
			if w:
				cap.set(cv2.CAP_PROP_FRAME_WIDTH, int(w))
			if h:
				cap.set(cv2.CAP_PROP_FRAME_HEIGHT, int(h))

			while self._is_running():
				ok, frame_bgr = cap.read()
				if not ok or frame_bgr is None:
					time.sleep(0.01)
					continue
				rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
				callbacks: List[Callable[[], None]] = []
				with self._lock:
					self._latest = rgb
					self._latest_t = time.time()
					self._frame_idx += 1
					if not self._ready:
						self._ready = True
						callbacks, self._ready_callbacks = self._ready_callbacks, []
				for cb in callbacks:
					try:
						cb()
					except Exception:
						logger.exception("[Video] ready callback failed")
		except Exception as e:
			with self._lock:
				self._last_error = repr(e)
				self._running = False
			logger.exception("[Video] capture loop crashed")
		finally:
			cap.release()
