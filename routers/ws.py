"""WebSocket endpoint and ConnectionManager. Route: /ws."""
import asyncio
import json
import logging
from typing import Any, Dict, Optional, Set

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app_state import AppState
from schemas.responses import SnapshotResponse

router = APIRouter(tags=["ws"])


class ConnectionManager:
	def __init__(self) -> None:
		self._clients: Set[WebSocket] = set()
		self._lock = asyncio.Lock()
		self._loop: Optional[asyncio.AbstractEventLoop] = None
		# Strong refs so fire-and-forget broadcasts are not garbage collected mid-send.
		self._tasks: Set[asyncio.Task] = set()

	def bind_loop(self, loop: Optional[asyncio.AbstractEventLoop]) -> None:
		"""Set (or clear, with None) the loop that broadcast_soon() schedules onto."""
		self._loop = loop

	async def connect(self, websocket: WebSocket) -> None:
		await websocket.accept()
		async with self._lock:
			self._clients.add(websocket)

	async def disconnect(self, websocket: WebSocket) -> None:
		async with self._lock:
			self._clients.discard(websocket)

	async def broadcast_json(self, message: Dict[str, Any]) -> None:
		payload = json.dumps(message, separators=(",", ":"))
		async with self._lock:
			if not self._clients:
				return
			send_tasks = []
			for ws in list(self._clients):
				send_tasks.append(self._send(ws, payload))
			await asyncio.gather(*send_tasks, return_exceptions=True)

	def broadcast_soon(self, message: Dict[str, Any]) -> None:
		"""
		Fire-and-forget broadcast. Callable from any thread (the capture thread
		logs too); messages are dropped while no loop is bound.
		"""
		loop = self._loop
		if loop is None or loop.is_closed():
			return
		try:
			running = asyncio.get_running_loop()
		except RuntimeError:
			running = None
		if running is loop:
			self._spawn(message)
			return
		try:
			loop.call_soon_threadsafe(self._spawn, message)
		except RuntimeError:
			# Loop closed between the check above and the call (shutdown); drop the message.
			pass

	def _spawn(self, message: Dict[str, Any]) -> None:
		task = asyncio.get_running_loop().create_task(self.broadcast_json(message))
		self._tasks.add(task)
		task.add_done_callback(self._tasks.discard)

	@staticmethod
	async def _send(ws: WebSocket, payload: str) -> None:
		try:
			await ws.send_text(payload)
		except Exception:
			try:
				await ws.close()
			except Exception:
				pass


class ClientLogHandler(logging.Handler):
	"""Forwards log records to WebSocket clients as {"type": "log", "msg": ...}."""

	def __init__(self, manager: ConnectionManager, level: int = logging.INFO) -> None:
		super().__init__(level=level)
		self._manager = manager

	def emit(self, record: logging.LogRecord) -> None:
		try:
			msg = self.format(record)
		except Exception:
			self.handleError(record)
			return
		self._manager.broadcast_soon({"type": "log", "msg": msg})


@router.websocket("/ws")
async def ws_endpoint(websocket: WebSocket):
	state: AppState = websocket.app.state.state
	manager: ConnectionManager = state.manager
	await manager.connect(websocket)
	try:
		# Late joiners get the current state straight away.
		if state.session is not None:
			snap = SnapshotResponse.from_snapshot(state.session.snapshot())
			await websocket.send_text(json.dumps({"type": "state", **snap.model_dump()}, separators=(",", ":")))
		while True:
			await websocket.receive_text()
	except WebSocketDisconnect:
		pass
	except Exception:
		pass
	finally:
		await manager.disconnect(websocket)
