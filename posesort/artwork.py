from __future__ import annotations

import asyncio
import logging
import urllib.request
from dataclasses import dataclass
from io import BytesIO
from typing import Dict, Optional

from PIL import Image

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadedArtwork:
	"""Decoded item image, ready to be drawn. Never mutated once created."""

	url: str
	image: Image.Image

	@property
	def size(self) -> tuple[int, int]:
		return self.image.size


class ArtworkLoader:
	"""
	Downloads and decodes item artwork off the event loop.

	Failures (network, HTTP, undecodable bytes) are logged and resolve to None;
	the item then simply never floats above the player's head. Successful loads
	are cached per URL since the same few items come round again and again.
	"""

	def __init__(self, timeout_seconds: float = 5.0, user_agent: str = "posesort/0.1") -> None:
		self._timeout = float(timeout_seconds)
		self._user_agent = user_agent
		self._cache: Dict[str, LoadedArtwork] = {}

	async def load(self, url: str) -> Optional[LoadedArtwork]:
		hit = self._cache.get(url)
		if hit is not None:
			return hit
		loop = asyncio.get_running_loop()
		try:
			image = await loop.run_in_executor(None, self._fetch_and_decode, url)
		except Exception as e:
			logger.warning("[Artwork] failed to load %s: %r", url, e)
			return None
		art = LoadedArtwork(url=url, image=image)
		self._cache[url] = art
		return art

	def _fetch_and_decode(self, url: str) -> Image.Image:
		req = urllib.request.Request(url, headers={"User-Agent": self._user_agent})
		with urllib.request.urlopen(req, timeout=self._timeout) as resp:
			data = resp.read()
		img = Image.open(BytesIO(data))
		# RGBA keeps transparent PNG backgrounds when pasted over the video.
		return img.convert("RGBA")
