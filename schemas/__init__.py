"""Pydantic request/response models for API validation and docs."""
from schemas.requests import AnswerPayload
from schemas.responses import (
	AnswerResponse,
	CategoriesResponse,
	CategoryResponse,
	ItemResponse,
	SnapshotResponse,
)

__all__ = [
	"AnswerPayload",
	"AnswerResponse",
	"CategoriesResponse",
	"CategoryResponse",
	"ItemResponse",
	"SnapshotResponse",
]
