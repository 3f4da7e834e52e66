"""Background tick that recomputes timer display state for all conversations."""

from __future__ import annotations

import asyncio
import inspect
import logging
from contextlib import suppress
from typing import Awaitable, Callable, Iterable, Optional, Union

from aviato.domain.chat import timers
from aviato.domain.chat.models import Conversation, TimerSnapshot
from aviato.infra.clock import Clock, system_clock
from aviato.settings import settings

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[list[TimerSnapshot]], Union[None, Awaitable[None]]]


class TimerPoller:
	"""Polls ``source`` and hands fresh snapshots to ``on_tick``; never mutates state."""

	def __init__(
		self,
		source: Callable[[], Iterable[Conversation]],
		on_tick: SnapshotCallback,
		*,
		clock: Clock | None = None,
		interval_seconds: float | None = None,
	) -> None:
		self._source = source
		self._on_tick = on_tick
		self._clock = clock or system_clock
		self._interval = interval_seconds if interval_seconds is not None else settings.timer_poll_interval_seconds
		self._task: Optional[asyncio.Task] = None

	@property
	def running(self) -> bool:
		return self._task is not None and not self._task.done()

	async def tick(self) -> list[TimerSnapshot]:
		current = timers.snapshots(self._source(), self._clock.now())
		result = self._on_tick(current)
		if inspect.isawaitable(result):
			await result
		return current

	def start(self) -> None:
		if self.running:
			return
		self._task = asyncio.create_task(self._run(), name="timer-poller")

	async def stop(self) -> None:
		task = self._task
		self._task = None
		if task is None:
			return
		task.cancel()
		with suppress(asyncio.CancelledError):
			await task

	async def _run(self) -> None:
		interval = max(0.01, float(self._interval))
		while True:
			try:
				await self.tick()
			except asyncio.CancelledError:
				raise
			except Exception:  # pragma: no cover - a broken display callback must not stop the tick
				logger.exception("timer tick failed")
			await asyncio.sleep(interval)
