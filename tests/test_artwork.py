import asyncio

import pytest
from PIL import Image

from posesort.artwork import ArtworkLoader
from posesort.config import PoseConfig, VideoConfig
from posesort.pose import get_pose_source
from posesort.video_source import frame_size, get_video_source


def test_loads_decodes_and_caches(tmp_path):
	p = tmp_path / "bottle.png"
	Image.new("RGB", (12, 10), (1, 2, 3)).save(p)
	url = p.as_uri()

	async def scenario():
		loader = ArtworkLoader()
		art = await loader.load(url)
		assert art is not None
		assert art.size == (12, 10)
		assert art.image.mode == "RGBA"
		assert await loader.load(url) is art

	asyncio.run(scenario())


def test_failures_resolve_to_none(tmp_path):
	junk = tmp_path / "junk.png"
	junk.write_bytes(b"not an image")

	async def scenario():
		loader = ArtworkLoader()
		assert await loader.load((tmp_path / "missing.png").as_uri()) is None
		assert await loader.load(junk.as_uri()) is None
		Image.new("RGB", (3, 3)).save(junk, format="PNG")
		assert await loader.load(junk.as_uri()) is not None  # failures are not cached

	asyncio.run(scenario())


def test_unknown_backends_are_rejected():
	with pytest.raises(ValueError):
		get_video_source(VideoConfig(backend="picamera"))
	with pytest.raises(ValueError):
		get_pose_source(PoseConfig(backend="movenet"))


def test_frame_size():
	assert frame_size(None) == (0, 0)
	assert frame_size(Image.new("RGB", (4, 4))) == (0, 0)

	class Fake:
		shape = (480, 640, 3)

	assert frame_size(Fake()) == (640, 480)
