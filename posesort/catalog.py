"""
Static sorting catalog: the bins (categories) a player can choose from and the
items that float above the player's head.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from posesort.artwork import LoadedArtwork

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Category:
	id: str
	display_name: str
	color: str  # CSS hex colour used by the UI buttons
	image_url: Optional[str] = None


@dataclass(frozen=True)
class Item:
	"""
	One sortable item.

	Catalog entries never carry artwork; every pick produces a fresh copy whose
	`artwork` is filled in once the image has been downloaded.
	"""

	name: str
	category: str
	image_url: str
	artwork: Optional[LoadedArtwork] = None

	@property
	def renderable(self) -> bool:
		return self.artwork is not None


DEFAULT_CATEGORIES: Tuple[Category, ...] = (
	Category("general", "General waste", "#4B5563", "https://hospitalitythailand.com/uploads/202206/6297137393a86.png"),
	Category("recycle", "Recyclable", "#3B82F6", "https://mw.co.th/uploads/202206/62970a115dc8e.png"),
	Category("wet", "Wet", "#10B981", "https://mw.co.th/uploads/202206/629713a699e2e.png"),
	Category("hazardous", "Hazardous", "#EF4444", "https://hospitalitythailand.com/uploads/202206/629708034e62a.png"),
)

DEFAULT_ITEMS: Tuple[Item, ...] = (
	Item("Plastic Bottle", "recycle", "https://img.lovepik.com/png/20230930/mineral-water-water-bottle-recover-drink_36069_wh860.png"),
	Item("Banana Peel", "wet", "https://png.pngtree.com/png-clipart/20220108/ourmid/pngtree-banana-peel-decorative-pattern-illustration-png-image_4101651.png"),
	Item("Battery", "hazardous", "https://e7.pngegg.com/pngimages/636/772/png-clipart-battery-battery-thumbnail.png"),
	Item("Paper", "recycle", "https://png.pngtree.com/png-clipart/20220720/original/pngtree-toilet-tissue-paper-roll-vector-illustration-png-image_8388391.png"),
	Item("Fishbone", "wet", "https://encrypted-tbn0.gstatic.com/images?q=tbn:ANd9GcR8Pc6CqNsOt25cGt3g3k8iIvHyIeX1RnpjFQ&s"),
	Item("Candy Wrapper", "general", "https://t4.ftcdn.net/jpg/03/04/69/69/360_F_304696907_czmMiRwezOOmR4F3M4soUUfRSmiC7O2a.jpg"),
)


class Catalog:
	"""Immutable set of categories and items for the lifetime of the process."""

	def __init__(self, categories: Sequence[Category], items: Sequence[Item]) -> None:
		if not categories:
			raise ValueError("catalog needs at least one category")
		if not items:
			raise ValueError("catalog needs at least one item")
		self._categories: Tuple[Category, ...] = tuple(categories)
		self._by_id: Dict[str, Category] = {c.id: c for c in self._categories}
		unknown = sorted({it.category for it in items if it.category not in self._by_id})
		if unknown:
			raise ValueError(f"items reference unknown categories: {', '.join(unknown)}")
		# Strip any artwork so picks always start non-renderable.
		self._items: Tuple[Item, ...] = tuple(replace(it, artwork=None) for it in items)

	@property
	def categories(self) -> Tuple[Category, ...]:
		return self._categories

	@property
	def items(self) -> Tuple[Item, ...]:
		return self._items

	def has_category(self, category_id: str) -> bool:
		return category_id in self._by_id

	def pick(self, rng: random.Random) -> Item:
		"""Uniformly random item; a new object each call so callers can tell picks apart."""
		return replace(rng.choice(self._items))


def default_catalog() -> Catalog:
	return Catalog(DEFAULT_CATEGORIES, DEFAULT_ITEMS)


def _category_from_dict(obj: Dict[str, Any]) -> Optional[Category]:
	cid = str(obj.get("id") or obj.get("type") or "").strip()
	if not cid:
		return None
	return Category(
		id=cid,
		display_name=str(obj.get("display_name") or obj.get("name") or cid),
		color=str(obj.get("color") or "#4B5563"),
		image_url=str(obj["image_url"]) if obj.get("image_url") else None,
	)


def _item_from_dict(obj: Dict[str, Any]) -> Optional[Item]:
	name = str(obj.get("name") or "").strip()
	category = str(obj.get("category") or obj.get("type") or "").strip()
	url = str(obj.get("image_url") or obj.get("image") or "").strip()
	if not name or not category or not url:
		return None
	return Item(name=name, category=category, image_url=url)


def catalog_from_config(categories: List[Dict[str, Any]], items: List[Dict[str, Any]]) -> Catalog:
	"""
	Build a catalog from config.json overrides.

	Either list may be empty, in which case the built-in default is used for that
	half. Malformed entries are skipped with a warning; if the result is not a
	consistent catalog we fall back to the defaults entirely.
	"""
	cats: List[Category] = list(DEFAULT_CATEGORIES)
	its: List[Item] = list(DEFAULT_ITEMS)
	if categories:
		parsed_cats = [c for c in (_category_from_dict(o) for o in categories) if c is not None]
		if len(parsed_cats) != len(categories):
			logger.warning("[Catalog] skipped %d malformed category entries", len(categories) - len(parsed_cats))
		cats = parsed_cats
	if items:
		parsed_items = [i for i in (_item_from_dict(o) for o in items) if i is not None]
		if len(parsed_items) != len(items):
			logger.warning("[Catalog] skipped %d malformed item entries", len(items) - len(parsed_items))
		its = parsed_items
	try:
		return Catalog(cats, its)
	except ValueError as e:
		logger.warning("[Catalog] invalid catalog override (%s); using defaults", e)
		return default_catalog()
