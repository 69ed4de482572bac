"""
Explicit app state: single source of truth for the server's runtime objects.
Created in create_app, attached to app.state.state; injected into routes via Depends(get_state).
"""
from typing import Any, Callable, Optional

from posesort.session import GameSession


class AppState:
	"""
	Holds everything the routers need. Populated in server create_app/lifespan;
	nothing here is a module-level global.
	"""
	# WebSocket and UI (set at app load)
	manager: Any = None
	get_page_html: Optional[Callable[[str], str]] = None

	# The running game (set in lifespan)
	session: Optional[GameSession] = None
