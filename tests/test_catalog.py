import random

import pytest

from conftest import make_artwork
from posesort.catalog import (
	DEFAULT_CATEGORIES,
	DEFAULT_ITEMS,
	Catalog,
	Category,
	Item,
	catalog_from_config,
	default_catalog,
)


def test_default_catalog_is_consistent():
	c = default_catalog()
	assert [cat.id for cat in c.categories] == ["general", "recycle", "wet", "hazardous"]
	assert len(c.items) == 6
	assert all(c.has_category(it.category) for it in c.items)
	assert {cat.id: cat.display_name for cat in c.categories}["wet"] == "Wet"
	assert not c.has_category("plastic")


def test_items_must_reference_known_categories():
	with pytest.raises(ValueError):
		Catalog([Category("a", "A", "#000")], [Item("x", "b", "mem://x")])


def test_empty_catalog_is_rejected():
	with pytest.raises(ValueError):
		Catalog([], [])
	with pytest.raises(ValueError):
		Catalog(DEFAULT_CATEGORIES, [])


def test_catalog_entries_never_carry_artwork():
	c = Catalog(DEFAULT_CATEGORIES, [Item("x", "wet", "mem://x", artwork=make_artwork())])
	assert not c.items[0].renderable


def test_pick_returns_a_fresh_copy():
	c = default_catalog()
	rng = random.Random(5)
	picks = [c.pick(rng) for _ in range(50)]
	assert all(p.name in {it.name for it in DEFAULT_ITEMS} for p in picks)
	assert len({id(p) for p in picks}) == len(picks)
	assert all(p.artwork is None for p in picks)


def test_config_overrides():
	c = catalog_from_config(
		[{"id": "paper", "display_name": "Paper", "color": "#fff"}, {"name": ""}],
		[{"name": "Newspaper", "category": "paper", "image_url": "mem://n"}],
	)
	assert [cat.id for cat in c.categories] == ["paper"]
	assert [it.name for it in c.items] == ["Newspaper"]


def test_inconsistent_overrides_fall_back_to_defaults():
	c = catalog_from_config([], [{"name": "Tyre", "category": "rubber", "image_url": "mem://t"}])
	assert [it.name for it in c.items] == [it.name for it in DEFAULT_ITEMS]

	c = catalog_from_config([], [])
	assert len(c.categories) == len(DEFAULT_CATEGORIES)
