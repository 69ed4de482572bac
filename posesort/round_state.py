"""
Round state machine: the single source of truth for score, countdown and the
item currently being sorted.

States:
	IDLE      - no round started yet (model still loading)
	ACTIVE    - countdown running, answers accepted
	GAME_OVER - countdown hit zero; only restart() leaves this state

Every mutation happens inside one synchronous call, so on a single event loop
any reader (timer, sampler, HTTP handler) sees either the state before or after
a transition, never a half-applied one.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, Optional, Set

from posesort.artwork import ArtworkLoader, LoadedArtwork
from posesort.catalog import Catalog, Item

logger = logging.getLogger(__name__)


class RoundPhase(str, Enum):
	IDLE = "idle"
	ACTIVE = "active"
	GAME_OVER = "game_over"


class AnswerOutcome(str, Enum):
	CORRECT = "correct"
	WRONG = "wrong"


@dataclass(frozen=True)
class RoundSnapshot:
	"""Read-only view handed to the timer, the sampler and the presentation layer."""

	phase: RoundPhase
	score: int
	time_remaining: int
	current_item: Optional[Item]
	status: str = ""

	@property
	def is_game_over(self) -> bool:
		return self.phase is RoundPhase.GAME_OVER


SnapshotListener = Callable[[RoundSnapshot], None]


class RoundStateMachine:
	def __init__(
		self,
		catalog: Catalog,
		artwork_loader: Optional[ArtworkLoader] = None,
		*,
		round_seconds: int = 15,
		rng: Optional[random.Random] = None,
	) -> None:
		if round_seconds <= 0:
			raise ValueError("round_seconds must be positive")
		self.catalog = catalog
		self.round_seconds = int(round_seconds)
		self._artwork_loader = artwork_loader
		self._rng = rng or random.Random()

		self._phase = RoundPhase.IDLE
		self._score = 0
		self._time_remaining = self.round_seconds
		self._current: Optional[Item] = None

		self._listeners: List[SnapshotListener] = []
		# Strong refs so pending artwork tasks are not garbage collected mid-flight.
		self._artwork_tasks: Set[asyncio.Task] = set()

	# ------------------------------------------------------------------ reads

	@property
	def phase(self) -> RoundPhase:
		return self._phase

	@property
	def is_active(self) -> bool:
		return self._phase is RoundPhase.ACTIVE

	@property
	def is_game_over(self) -> bool:
		return self._phase is RoundPhase.GAME_OVER

	@property
	def score(self) -> int:
		return self._score

	@property
	def time_remaining(self) -> int:
		return self._time_remaining

	@property
	def current_item(self) -> Optional[Item]:
		return self._current

	def snapshot(self, status: str = "") -> RoundSnapshot:
		return RoundSnapshot(
			phase=self._phase,
			score=self._score,
			time_remaining=self._time_remaining,
			current_item=self._current,
			status=status,
		)

	def add_listener(self, listener: SnapshotListener) -> None:
		self._listeners.append(listener)

	# ------------------------------------------------------------ transitions

	def begin(self) -> None:
		"""Start a fresh round: new item, full clock. Score is kept."""
		self._current = self.catalog.pick(self._rng)
		self._phase = RoundPhase.ACTIVE
		self._time_remaining = self.round_seconds
		logger.info("[Round] begin: item=%s time=%d score=%d", self._current.name, self._time_remaining, self._score)
		self._request_artwork(self._current)
		self._notify()

	def restart(self) -> None:
		self._score = 0
		self.begin()

	def answer(self, category: str) -> Optional[AnswerOutcome]:
		"""
		Judge the player's choice for the current item.

		Returns None (and changes nothing) unless a round is active. The round
		clock is continuous: a correct answer swaps the item but keeps the time.
		"""
		if self._phase is not RoundPhase.ACTIVE or self._current is None:
			logger.debug("[Round] answer %r ignored in phase %s", category, self._phase.value)
			return None

		if category == self._current.category:
			self._score += 1
			previous = self._current.name
			self._current = self.catalog.pick(self._rng)
			logger.info("[Round] correct: %s -> %s, score=%d", previous, category, self._score)
			self._request_artwork(self._current)
			outcome = AnswerOutcome.CORRECT
		else:
			self._score = max(self._score - 1, 0)
			logger.info("[Round] wrong: %s is not %s, score=%d", self._current.name, category, self._score)
			outcome = AnswerOutcome.WRONG
		self._notify()
		return outcome

	def tick(self) -> None:
		"""One elapsed second. Expiry applies a single clamped penalty."""
		if self._phase is not RoundPhase.ACTIVE:
			return
		self._time_remaining = max(self._time_remaining - 1, 0)
		if self._time_remaining == 0:
			self._score = max(self._score - 1, 0)
			self._phase = RoundPhase.GAME_OVER
			logger.info("[Round] time up, final score=%d", self._score)
		self._notify()

	# --------------------------------------------------------------- artwork

	def _request_artwork(self, item: Item) -> None:
		if self._artwork_loader is None:
			return
		try:
			loop = asyncio.get_running_loop()
		except RuntimeError:
			logger.debug("[Round] no running loop; artwork for %s not requested", item.name)
			return
		task = loop.create_task(self._artwork_loader.load(item.image_url))
		self._artwork_tasks.add(task)
		task.add_done_callback(lambda t, it=item: self._on_artwork_done(it, t))

	def _on_artwork_done(self, item: Item, task: "asyncio.Task[Optional[LoadedArtwork]]") -> None:
		self._artwork_tasks.discard(task)
		if task.cancelled():
			return
		exc = task.exception()
		if exc is not None:
			logger.warning("[Round] artwork task for %s failed: %r", item.name, exc)
			return
		self.merge_artwork(item, task.result())

	def merge_artwork(self, item: Item, artwork: Optional[LoadedArtwork]) -> bool:
		"""
		Attach resolved artwork to `item` if it is still the current item.

		Resolutions for items that have since been replaced are dropped, so a
		slow download can never overwrite a newer item's state.
		"""
		if artwork is None:
			return False
		if self._current is not item:
			logger.debug("[Round] dropping stale artwork for %s", item.name)
			return False
		self._current = replace(item, artwork=artwork)
		self._notify()
		return True

	def cancel_pending_artwork(self) -> None:
		for task in list(self._artwork_tasks):
			task.cancel()
		self._artwork_tasks.clear()

	def _notify(self) -> None:
		snap = self.snapshot()
		for listener in list(self._listeners):
			try:
				listener(snap)
			except Exception:
				logger.exception("[Round] snapshot listener failed")
