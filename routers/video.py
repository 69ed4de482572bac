"""Video routes. Routes: /video/status, /video/mjpeg, /video/snapshot.jpg."""
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response, StreamingResponse

from deps import get_session
from posesort.session import GameSession
from posesort.video_source import MJPEG_BOUNDARY, mjpeg_from_latest

router = APIRouter(tags=["video"])


@router.get("/video/status")
async def video_status(session: GameSession = Depends(get_session)):
	st = session.video.get_status()
	st["sampler_running"] = session.sampler.running
	st["pose_frames"] = session.sampler.frame_counter
	st["renders"] = session.sampler.render_count
	st["pose_failures"] = session.sampler.failures
	st["decimation"] = session.sampler.decimation
	return st


@router.get("/video/mjpeg")
async def video_mjpeg(fps: float = 15.0, session: GameSession = Depends(get_session)):
	"""Live MJPEG stream of the composed overlay frames."""
	return StreamingResponse(
		mjpeg_from_latest(session.get_latest_jpeg, fps=float(fps)),
		media_type=f"multipart/x-mixed-replace; boundary={MJPEG_BOUNDARY}",
		headers={
			"Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
			"Pragma": "no-cache",
			"Connection": "keep-alive",
		},
	)


@router.get("/video/snapshot.jpg")
async def video_snapshot(session: GameSession = Depends(get_session)):
	"""Return the latest composed overlay frame as a single JPEG."""
	jpeg, _t = session.get_latest_jpeg()
	if jpeg is None:
		raise HTTPException(status_code=404, detail="No overlay frame rendered yet")
	return Response(
		content=jpeg,
		media_type="image/jpeg",
		headers={
			"Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
			"Pragma": "no-cache",
		},
	)
