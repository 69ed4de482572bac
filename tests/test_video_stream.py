import asyncio

import pytest

from posesort.video_source import mjpeg_from_latest, mjpeg_part


def test_mjpeg_part_layout():
	part = mjpeg_part(b"\xff\xd8abc")
	assert part == b"--frame\r\nContent-Type: image/jpeg\r\nContent-Length: 5\r\n\r\n\xff\xd8abc\r\n"


def test_stream_waits_for_first_frame_and_sends_each_once():
	latest = {"jpeg": None, "t": None}

	async def scenario():
		stream = mjpeg_from_latest(lambda: (latest["jpeg"], latest["t"]), fps=1000.0, poll_seconds=0.005)
		pending = asyncio.ensure_future(stream.__anext__())
		await asyncio.sleep(0.03)
		assert not pending.done()

		latest["jpeg"], latest["t"] = b"one", 1.0
		assert await asyncio.wait_for(pending, 1.0) == mjpeg_part(b"one")

		latest["jpeg"], latest["t"] = b"two", 2.0
		assert await asyncio.wait_for(stream.__anext__(), 1.0) == mjpeg_part(b"two")

		# same timestamp: nothing new to send
		with pytest.raises(asyncio.TimeoutError):
			await asyncio.wait_for(stream.__anext__(), 0.05)
		await stream.aclose()

	asyncio.run(scenario())


def test_stream_respects_fps():
	frames = iter(range(1, 1000))

	async def scenario():
		stream = mjpeg_from_latest(lambda: (b"x", float(next(frames))), fps=20.0, poll_seconds=0.001)
		loop = asyncio.get_running_loop()
		await stream.__anext__()
		t0 = loop.time()
		await stream.__anext__()
		await stream.__anext__()
		assert loop.time() - t0 >= 0.09
		await stream.aclose()

	asyncio.run(scenario())
