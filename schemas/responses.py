"""Pydantic response models for the presentation boundary."""
from typing import List, Optional

from pydantic import BaseModel

from posesort.catalog import Category, Item
from posesort.round_state import RoundSnapshot


class ItemResponse(BaseModel):
	name: str
	category: str
	image_url: str
	renderable: bool

	@classmethod
	def from_item(cls, item: Item) -> "ItemResponse":
		return cls(name=item.name, category=item.category, image_url=item.image_url, renderable=item.renderable)


class SnapshotResponse(BaseModel):
	"""Response from GET /state and payload of `{"type": "state"}` WebSocket messages."""

	status: str
	phase: str
	score: int
	time_remaining: int
	is_game_over: bool
	current_item: Optional[ItemResponse] = None

	@classmethod
	def from_snapshot(cls, snap: RoundSnapshot) -> "SnapshotResponse":
		return cls(
			status=snap.status,
			phase=snap.phase.value,
			score=snap.score,
			time_remaining=snap.time_remaining,
			is_game_over=snap.is_game_over,
			current_item=ItemResponse.from_item(snap.current_item) if snap.current_item else None,
		)


class CategoryResponse(BaseModel):
	id: str
	display_name: str
	color: str
	image_url: Optional[str] = None

	@classmethod
	def from_category(cls, c: Category) -> "CategoryResponse":
		return cls(id=c.id, display_name=c.display_name, color=c.color, image_url=c.image_url)


class CategoriesResponse(BaseModel):
	categories: List[CategoryResponse]


class AnswerResponse(BaseModel):
	"""Response from POST /answer."""

	outcome: str  # "correct" / "wrong"
	state: SnapshotResponse
