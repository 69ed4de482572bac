"""
Overlay rendering: live video + pose skeleton + the current item floating above
the player's head.

The renderer only talks to the abstract DrawingSurface so tests can record the
draw calls; PillowSurface is the real raster implementation used for the MJPEG
stream.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from io import BytesIO
from typing import Any, Optional, Sequence, Tuple

from PIL import Image, ImageDraw

from posesort.artwork import LoadedArtwork
from posesort.config import OverlayConfig
from posesort.pose.topology import COCO17, PoseTopology
from posesort.pose.types import Keypoint


class DrawingSurface(ABC):
	"""2D pixel grid with the four primitives the overlay needs."""

	@property
	@abstractmethod
	def width(self) -> int: ...

	@property
	@abstractmethod
	def height(self) -> int: ...

	@abstractmethod
	def clear(self) -> None: ...

	@abstractmethod
	def draw_image(self, image: Any, x: int, y: int, w: int, h: int) -> None: ...

	@abstractmethod
	def draw_circle(self, x: int, y: int, radius: int, color: str) -> None: ...

	@abstractmethod
	def draw_line(self, x0: int, y0: int, x1: int, y1: int, width: int, color: str) -> None: ...


class PillowSurface(DrawingSurface):
	"""Pillow-backed surface. Accepts numpy RGB frames or PIL images in draw_image."""

	def __init__(self, width: int, height: int) -> None:
		self._img = Image.new("RGB", (int(width), int(height)))
		self._draw = ImageDraw.Draw(self._img)

	@property
	def width(self) -> int:
		return self._img.width

	@property
	def height(self) -> int:
		return self._img.height

	@property
	def image(self) -> Image.Image:
		return self._img

	def clear(self) -> None:
		self._draw.rectangle((0, 0, self._img.width, self._img.height), fill=(0, 0, 0))

	def draw_image(self, image: Any, x: int, y: int, w: int, h: int) -> None:
		src = image if isinstance(image, Image.Image) else Image.fromarray(image)
		if src.size != (w, h):
			src = src.resize((int(w), int(h)))
		if src.mode == "RGBA":
			self._img.paste(src, (int(x), int(y)), src)
		else:
			self._img.paste(src.convert("RGB"), (int(x), int(y)))

	def draw_circle(self, x: int, y: int, radius: int, color: str) -> None:
		self._draw.ellipse((x - radius, y - radius, x + radius, y + radius), fill=color)

	def draw_line(self, x0: int, y0: int, x1: int, y1: int, width: int, color: str) -> None:
		self._draw.line((x0, y0, x1, y1), fill=color, width=int(width))

	def encode_jpeg(self, quality: int = 80) -> bytes:
		buf = BytesIO()
		self._img.save(buf, format="JPEG", quality=int(quality))
		return buf.getvalue()


@dataclass(frozen=True)
class OverlayStyle:
	confidence_threshold: float = 0.3
	head_anchor: str = "nose"
	anchor_size: int = 150
	anchor_y_offset: int = 150
	marker_radius: int = 5
	line_width: int = 2
	marker_color: str = "red"
	line_color: str = "blue"

	@classmethod
	def from_config(cls, cfg: OverlayConfig) -> "OverlayStyle":
		return cls(
			confidence_threshold=cfg.confidence_threshold,
			head_anchor=cfg.head_anchor,
			anchor_size=cfg.anchor_size,
			anchor_y_offset=cfg.anchor_y_offset,
			marker_radius=cfg.marker_radius,
			line_width=cfg.line_width,
			marker_color=cfg.marker_color,
			line_color=cfg.line_color,
		)


def _px(v: float) -> int:
	return int(round(v))


class OverlayRenderer:
	"""Stateless compositor; identical inputs always produce identical draw calls."""

	def __init__(self, style: Optional[OverlayStyle] = None, topology: PoseTopology = COCO17) -> None:
		self.style = style or OverlayStyle()
		self.topology = topology

	def confident(self, kp: Keypoint) -> bool:
		return kp.score > self.style.confidence_threshold

	def find_anchor(self, keypoints: Sequence[Keypoint]) -> Optional[Keypoint]:
		for kp in keypoints:
			if kp.name == self.style.head_anchor and self.confident(kp):
				return kp
		return None

	def anchor_box(self, anchor: Keypoint) -> Tuple[int, int, int, int]:
		"""(x, y, w, h) of the item image: centred on x, lifted above the head."""
		s = self.style.anchor_size
		x = _px(anchor.x - s / 2)
		y = _px(anchor.y - s / 2 - self.style.anchor_y_offset)
		return x, y, s, s

	def render(
		self,
		surface: DrawingSurface,
		frame: Any,
		keypoints: Sequence[Keypoint],
		artwork: Optional[LoadedArtwork] = None,
	) -> None:
		st = self.style
		surface.clear()
		surface.draw_image(frame, 0, 0, surface.width, surface.height)

		anchor = self.find_anchor(keypoints)
		if anchor is not None and artwork is not None:
			surface.draw_image(artwork.image, *self.anchor_box(anchor))

		for kp in keypoints:
			if self.confident(kp):
				surface.draw_circle(_px(kp.x), _px(kp.y), st.marker_radius, st.marker_color)

		for i, j in self.topology.edges_for(len(keypoints)):
			a, b = keypoints[i], keypoints[j]
			if self.confident(a) and self.confident(b):
				surface.draw_line(_px(a.x), _px(a.y), _px(b.x), _px(b.y), st.line_width, st.line_color)
