"""Network configuration constants for the live quiz server."""

import os

DEFAULT_HOST: str = os.environ.get("LIVE_QUIZ_HOST", "0.0.0.0")
DEFAULT_PORT: int = int(os.environ.get("LIVE_QUIZ_PORT", "8000"))
WEBSOCKET_PATH: str = "/ws"
