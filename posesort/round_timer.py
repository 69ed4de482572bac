from __future__ import annotations

import asyncio
import logging
from typing import Optional

from posesort.round_state import RoundStateMachine

logger = logging.getLogger(__name__)


class RoundTimer:
	"""
	Once-per-second countdown driving RoundStateMachine.tick().

	Holds at most one asyncio task. arm() always cancels the previous task before
	starting a new one; two live tasks would make the clock run at double speed.
	The task ends by itself when the round is no longer active.
	"""

	def __init__(self, machine: RoundStateMachine, interval: float = 1.0) -> None:
		if interval <= 0:
			raise ValueError("interval must be positive")
		self._machine = machine
		self._interval = float(interval)
		self._task: Optional[asyncio.Task] = None

	@property
	def armed(self) -> bool:
		return self._task is not None and not self._task.done()

	def arm(self) -> None:
		self.cancel()
		if not self._machine.is_active or self._machine.time_remaining <= 0:
			return
		self._task = asyncio.get_running_loop().create_task(self._run(), name="round-timer")
		logger.debug("[Timer] armed at %ds", self._machine.time_remaining)

	def cancel(self) -> None:
		task, self._task = self._task, None
		if task is not None and not task.done():
			task.cancel()

	async def _run(self) -> None:
		m = self._machine
		while m.is_active and m.time_remaining > 0:
			await asyncio.sleep(self._interval)
			m.tick()
		logger.debug("[Timer] stopped (phase=%s, remaining=%d)", m.phase.value, m.time_remaining)
