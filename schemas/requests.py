"""Pydantic request body models."""
from pydantic import BaseModel, Field


class AnswerPayload(BaseModel):
	"""Request body for POST /answer. The bin the player sorted the current item into."""

	category: str = Field(..., min_length=1, description="Category id, e.g. 'recycle'")
