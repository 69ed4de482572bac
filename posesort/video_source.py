from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Callable, Dict, Optional, Tuple

from posesort.config import VideoConfig


class VideoSource(ABC):
	"""
	Live camera feed.

	latest_frame() is a non-destructive read: calling it repeatedly returns the
	same frame until the capture side replaces it. Frames are RGB uint8 arrays.
	"""

	@abstractmethod
	def name(self) -> str: ...

	@abstractmethod
	def start(self) -> None: ...

	@abstractmethod
	def stop(self) -> None: ...

	@abstractmethod
	def is_ready(self) -> bool: ...

	@abstractmethod
	def on_ready(self, callback: Callable[[], None]) -> None:
		"""
		Register a callback fired once, when the first frame arrives. May be
		called from the capture thread; callers marshal onto their loop.
		"""
		...

	@abstractmethod
	def latest_frame(self) -> Optional[Any]: ...

	@abstractmethod
	def get_status(self) -> Dict[str, Any]: ...


def frame_size(frame: Optional[Any]) -> Tuple[int, int]:
	"""(width, height) of an HxWxC frame; (0, 0) when there is no frame."""
	if frame is None:
		return 0, 0
	shape = getattr(frame, "shape", None)
	if not shape or len(shape) < 2:
		return 0, 0
	return int(shape[1]), int(shape[0])


def get_video_source(cfg: VideoConfig) -> VideoSource:
	backend = (cfg.backend or "opencv").strip().lower()
	if backend in ("opencv", "cv2", "webcam"):
		from posesort.video_backends.opencv_backend import OpenCvVideoSource

		return OpenCvVideoSource(camera_index=cfg.camera_index, width=cfg.width, height=cfg.height)
	raise ValueError(f"Unknown video backend: {cfg.backend!r}")


MJPEG_BOUNDARY = "frame"


def mjpeg_part(jpeg: bytes, boundary: str = MJPEG_BOUNDARY) -> bytes:
	"""One multipart/x-mixed-replace part carrying a single JPEG."""
	head = f"--{boundary}\r\nContent-Type: image/jpeg\r\nContent-Length: {len(jpeg)}\r\n\r\n"
	return head.encode("ascii") + jpeg + b"\r\n"


async def mjpeg_from_latest(
	get_latest_jpeg_fn: Callable[[], Tuple[Optional[bytes], Optional[float]]],
	fps: float = 15.0,
	poll_seconds: float = 0.02,
) -> AsyncIterator[bytes]:
	"""
	Stream the newest published overlay frame as MJPEG parts, at most `fps`
	parts per second. Each frame (identified by its timestamp) is sent once.
	"""
	min_interval = 1.0 / fps if fps > 0 else 1.0 / 15.0
	last_t: Optional[float] = None
	next_due = 0.0
	while True:
		jpeg, t = get_latest_jpeg_fn()
		if jpeg is None or t is None or t == last_t:
			await asyncio.sleep(poll_seconds)
			continue
		wait = next_due - time.monotonic()
		if wait > 0:
			await asyncio.sleep(wait)
			continue
		last_t = t
		next_due = time.monotonic() + min_interval
		yield mjpeg_part(jpeg)
