"""Game routes. Routes: /state, /categories, /answer, /restart."""
from fastapi import APIRouter, Depends, HTTPException

from deps import get_session
from posesort.session import GameSession
from schemas.requests import AnswerPayload
from schemas.responses import (
	AnswerResponse,
	CategoriesResponse,
	CategoryResponse,
	SnapshotResponse,
)

router = APIRouter(tags=["game"])


@router.get("/state", response_model=SnapshotResponse)
async def get_round_state(session: GameSession = Depends(get_session)):
	"""Current score, countdown, item and status line."""
	return SnapshotResponse.from_snapshot(session.snapshot())


@router.get("/categories", response_model=CategoriesResponse)
async def list_categories(session: GameSession = Depends(get_session)):
	return CategoriesResponse(categories=[CategoryResponse.from_category(c) for c in session.catalog.categories])


@router.post("/answer", response_model=AnswerResponse)
async def answer(payload: AnswerPayload, session: GameSession = Depends(get_session)):
	"""Sort the current item into a bin. 409 when no round is running (before start or after time is up)."""
	category = payload.category.strip()
	if not session.catalog.has_category(category):
		raise HTTPException(status_code=400, detail=f"Unknown category: {category}")
	outcome = session.answer(category)
	if outcome is None:
		raise HTTPException(status_code=409, detail="No active round")
	return AnswerResponse(outcome=outcome.value, state=SnapshotResponse.from_snapshot(session.snapshot()))


@router.post("/restart", response_model=SnapshotResponse)
async def restart(session: GameSession = Depends(get_session)):
	"""Reset the score and start a new round."""
	if not session.lifecycle.model_ready:
		raise HTTPException(status_code=503, detail="Pose model still loading")
	session.restart()
	return SnapshotResponse.from_snapshot(session.snapshot())
