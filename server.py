import argparse
import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import replace
from pathlib import Path
from typing import Callable, Dict, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app_state import AppState
from posesort import __version__
from posesort.artwork import ArtworkLoader
from posesort.config import AppConfig, get_config, set_config_path
from posesort.pose import get_pose_source
from posesort.round_state import RoundSnapshot
from posesort.session import GameSession
from posesort.video_source import get_video_source
from routers import game, pages, video, ws
from schemas.responses import SnapshotResponse

logger = logging.getLogger("posesort.server")

# UI directory path
UI_DIR = Path(__file__).parent / "UI"

SessionFactory = Callable[[AppConfig], GameSession]


def load_html_template(filename: str, ui_dir: Path = UI_DIR) -> str:
	"""
	Load an HTML template file from the UI directory.

	Raises:
		FileNotFoundError: If the file doesn't exist
	"""
	file_path = ui_dir / filename
	if not file_path.exists():
		raise FileNotFoundError(f"UI template not found: {file_path}")
	with open(file_path, "r", encoding="utf-8") as f:
		return f.read()


def _lazy_page_loader(ui_dir: Path) -> Callable[[str], str]:
	cache: Dict[str, str] = {}

	def get_page_html(filename: str) -> str:
		if filename not in cache:
			cache[filename] = load_html_template(filename, ui_dir)
		return cache[filename]

	return get_page_html


def build_session(cfg: AppConfig) -> GameSession:
	"""Real session: webcam + MediaPipe + HTTP artwork downloads."""
	return GameSession(
		cfg,
		video=get_video_source(cfg.video),
		pose_source=get_pose_source(cfg.pose),
		artwork_loader=ArtworkLoader(),
	)


def create_app(cfg: Optional[AppConfig] = None, session_factory: SessionFactory = build_session) -> FastAPI:
	cfg = cfg or get_config()
	state = AppState()
	state.manager = ws.ConnectionManager()
	state.get_page_html = _lazy_page_loader(UI_DIR)

	def _broadcast_state(snap: RoundSnapshot) -> None:
		state.manager.broadcast_soon({"type": "state", **SnapshotResponse.from_snapshot(snap).model_dump()})

	@asynccontextmanager
	async def lifespan(app: FastAPI):
		state.manager.bind_loop(asyncio.get_running_loop())
		pkg_logger = logging.getLogger("posesort")
		handler = ws.ClientLogHandler(state.manager)
		handler.setFormatter(logging.Formatter("%(message)s"))
		pkg_logger.addHandler(handler)

		session = session_factory(cfg)
		session.add_listener(_broadcast_state)
		state.session = session
		try:
			await session.start()
			logger.info("[Server] session started (round=%ds, K=%d)", cfg.game.round_seconds, cfg.sampler.decimation)
			yield
		finally:
			await session.close()
			state.session = None
			pkg_logger.removeHandler(handler)
			state.manager.bind_loop(None)

	app = FastAPI(title="Pose Sort", version=__version__, lifespan=lifespan)
	app.state.state = state
	app.add_middleware(
		CORSMiddleware,
		allow_origins=["*"],
		allow_credentials=True,
		allow_methods=["*"],
		allow_headers=["*"],
	)
	app.include_router(pages.router)
	app.include_router(game.router)
	app.include_router(video.router)
	app.include_router(ws.router)
	return app


app = create_app()


def main(argv: Optional[list[str]] = None) -> int:
	p = argparse.ArgumentParser(description="Pose-anchored sorting game server")
	p.add_argument("--config", default=None, help="Path to config.json (optional)")
	p.add_argument("--host", default=None, help="Bind address (default from config)")
	p.add_argument("--port", type=int, default=None, help="Bind port (default from config)")
	p.add_argument("--decimation", type=int, default=None, help="Render every Kth pose estimate")
	p.add_argument("--debug", action="store_true", help="Enable debug logging.")
	args = p.parse_args(argv)

	logging.basicConfig(
		level=logging.DEBUG if args.debug else logging.INFO,
		format="%(levelname)s:%(name)s:%(message)s",
	)

	if args.config:
		set_config_path(args.config)
	cfg = get_config()
	if args.decimation is not None:
		cfg = replace(cfg, sampler=replace(cfg.sampler, decimation=max(1, int(args.decimation))))

	host = args.host or cfg.server.host
	port = int(args.port or cfg.server.port)
	try:
		uvicorn.run(create_app(cfg), host=host, port=port, log_level="debug" if args.debug else "info")
	except KeyboardInterrupt:
		pass
	return 0


if __name__ == "__main__":
	raise SystemExit(main())
