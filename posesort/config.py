from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class GameConfig:
	# Length of one round in seconds; the countdown restarts from here on begin/restart.
	round_seconds: int = 15
	# Seconds between timer ticks. Only tests should need to change this.
	timer_interval_seconds: float = 1.0


@dataclass(frozen=True)
class OverlayConfig:
	# Keypoints at or below this score are neither drawn nor used as the anchor.
	confidence_threshold: float = 0.3
	head_anchor: str = "nose"
	anchor_size: int = 150  # square side of the floating item image (px)
	anchor_y_offset: int = 150  # how far above the head anchor the item floats (px)
	marker_radius: int = 5
	line_width: int = 2
	marker_color: str = "red"
	line_color: str = "blue"


@dataclass(frozen=True)
class SamplerConfig:
	# Render every Kth successful pose estimate (1 = render every estimate).
	decimation: int = 1
	# Scheduling tick of the sampler loop (~display refresh).
	tick_seconds: float = 1.0 / 30.0
	jpeg_quality: int = 80


@dataclass(frozen=True)
class VideoConfig:
	backend: str = "opencv"
	camera_index: int = 0
	# Optional capture size request; None keeps the camera default.
	width: Optional[int] = None
	height: Optional[int] = None


@dataclass(frozen=True)
class PoseConfig:
	backend: str = "mediapipe"
	model_complexity: int = 1
	min_detection_confidence: float = 0.5
	min_tracking_confidence: float = 0.5


@dataclass(frozen=True)
class CatalogConfig:
	# Raw overrides; empty lists keep the built-in catalog.
	categories: List[Dict[str, Any]] = field(default_factory=list)
	items: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class ServerConfig:
	host: str = "127.0.0.1"
	port: int = 8000


@dataclass(frozen=True)
class AppConfig:
	game: GameConfig = field(default_factory=GameConfig)
	overlay: OverlayConfig = field(default_factory=OverlayConfig)
	sampler: SamplerConfig = field(default_factory=SamplerConfig)
	video: VideoConfig = field(default_factory=VideoConfig)
	pose: PoseConfig = field(default_factory=PoseConfig)
	catalog: CatalogConfig = field(default_factory=CatalogConfig)
	server: ServerConfig = field(default_factory=ServerConfig)


_CONFIG_PATH: Optional[Path] = None
_CONFIG_CACHE: Optional[AppConfig] = None


def _repo_root() -> Path:
	# posesort/config.py -> repo root is one level up.
	return Path(__file__).resolve().parents[1]


def get_default_config_path() -> Path:
	return _repo_root() / "config.json"


def set_config_path(path: str | Path) -> None:
	"""
	Override the config path (must be called before first get_config()).
	Used by the --config CLI flag.
	"""
	global _CONFIG_PATH
	global _CONFIG_CACHE
	_CONFIG_PATH = Path(path).expanduser().resolve()
	_CONFIG_CACHE = None


def _deep_get(d: Dict[str, Any], keys: list[str], default: Any = None) -> Any:
	cur: Any = d
	for k in keys:
		if not isinstance(cur, dict):
			return default
		cur = cur.get(k)
	return cur if cur is not None else default


def _as_int(v: Any, default: int) -> int:
	try:
		return int(v)
	except Exception:
		return int(default)


def _as_str(v: Any, default: str = "") -> str:
	return str(v) if v is not None else str(default)


def _as_float(v: Any, default: float) -> float:
	try:
		return float(v)
	except Exception:
		return float(default)


def _as_opt_int(v: Any) -> Optional[int]:
	if v is None:
		return None
	try:
		n = int(v)
	except Exception:
		return None
	return n if n > 0 else None


def _as_dict_list(v: Any) -> List[Dict[str, Any]]:
	if not isinstance(v, list):
		return []
	return [dict(x) for x in v if isinstance(x, dict)]


def load_config(path: Optional[str | Path] = None) -> AppConfig:
	p = Path(path).expanduser().resolve() if path else (_CONFIG_PATH or get_default_config_path())
	if not p.exists():
		# Defaults-only config; app can still run.
		return AppConfig()
	try:
		raw = json.loads(p.read_text(encoding="utf-8"))
	except Exception:
		# If config is malformed, fail safe to defaults (but keep app running).
		return AppConfig()

	if not isinstance(raw, dict):
		return AppConfig()

	round_seconds = _as_int(_deep_get(raw, ["game", "round_seconds"], 15), 15)
	timer_interval = _as_float(_deep_get(raw, ["game", "timer_interval_seconds"], 1.0), 1.0)

	threshold = _as_float(_deep_get(raw, ["overlay", "confidence_threshold"], 0.3), 0.3)
	head_anchor = _as_str(_deep_get(raw, ["overlay", "head_anchor"], "nose"), "nose").strip()
	anchor_size = _as_int(_deep_get(raw, ["overlay", "anchor_size"], 150), 150)
	anchor_y_offset = _as_int(_deep_get(raw, ["overlay", "anchor_y_offset"], 150), 150)
	marker_radius = _as_int(_deep_get(raw, ["overlay", "marker_radius"], 5), 5)
	line_width = _as_int(_deep_get(raw, ["overlay", "line_width"], 2), 2)
	marker_color = _as_str(_deep_get(raw, ["overlay", "marker_color"], "red"), "red")
	line_color = _as_str(_deep_get(raw, ["overlay", "line_color"], "blue"), "blue")

	decimation = _as_int(_deep_get(raw, ["sampler", "decimation"], 1), 1)
	tick_seconds = _as_float(_deep_get(raw, ["sampler", "tick_seconds"], 1.0 / 30.0), 1.0 / 30.0)
	jpeg_quality = _as_int(_deep_get(raw, ["sampler", "jpeg_quality"], 80), 80)

	video_backend = _as_str(_deep_get(raw, ["video", "backend"], "opencv"), "opencv").strip().lower()
	camera_index = _as_int(_deep_get(raw, ["video", "camera_index"], 0), 0)
	video_w = _as_opt_int(_deep_get(raw, ["video", "width"], None))
	video_h = _as_opt_int(_deep_get(raw, ["video", "height"], None))

	pose_backend = _as_str(_deep_get(raw, ["pose", "backend"], "mediapipe"), "mediapipe").strip().lower()
	model_complexity = _as_int(_deep_get(raw, ["pose", "model_complexity"], 1), 1)
	min_det = _as_float(_deep_get(raw, ["pose", "min_detection_confidence"], 0.5), 0.5)
	min_trk = _as_float(_deep_get(raw, ["pose", "min_tracking_confidence"], 0.5), 0.5)

	host = _as_str(_deep_get(raw, ["server", "host"], "127.0.0.1"), "127.0.0.1")
	port = _as_int(_deep_get(raw, ["server", "port"], 8000), 8000)

	return AppConfig(
		game=GameConfig(
			round_seconds=int(round_seconds) if int(round_seconds) > 0 else 15,
			timer_interval_seconds=float(timer_interval) if float(timer_interval) > 0.0 else 1.0,
		),
		overlay=OverlayConfig(
			confidence_threshold=min(max(float(threshold), 0.0), 1.0),
			head_anchor=head_anchor or "nose",
			anchor_size=int(anchor_size) if int(anchor_size) > 0 else 150,
			anchor_y_offset=int(anchor_y_offset),
			marker_radius=int(marker_radius) if int(marker_radius) > 0 else 5,
			line_width=int(line_width) if int(line_width) > 0 else 2,
			marker_color=marker_color or "red",
			line_color=line_color or "blue",
		),
		sampler=SamplerConfig(
			decimation=max(1, int(decimation)),
			tick_seconds=float(tick_seconds) if float(tick_seconds) > 0.0 else 1.0 / 30.0,
			jpeg_quality=min(max(int(jpeg_quality), 1), 95),
		),
		video=VideoConfig(
			backend=video_backend or "opencv",
			camera_index=max(0, int(camera_index)),
			width=video_w,
			height=video_h,
		),
		pose=PoseConfig(
			backend=pose_backend or "mediapipe",
			model_complexity=min(max(int(model_complexity), 0), 2),
			min_detection_confidence=float(min_det),
			min_tracking_confidence=float(min_trk),
		),
		catalog=CatalogConfig(
			categories=_as_dict_list(_deep_get(raw, ["catalog", "categories"], [])),
			items=_as_dict_list(_deep_get(raw, ["catalog", "items"], [])),
		),
		server=ServerConfig(host=host, port=int(port) if int(port) > 0 else 8000),
	)


def get_config() -> AppConfig:
	global _CONFIG_CACHE
	if _CONFIG_CACHE is None:
		_CONFIG_CACHE = load_config()
	return _CONFIG_CACHE
