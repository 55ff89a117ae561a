from __future__ import annotations

import os
import sys
from pathlib import Path

from mangum import Mangum


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.append(str(SRC))
os.environ.setdefault("PYTHONPATH", str(SRC))

# Serverless filesystems are read-only outside /tmp
os.environ.setdefault("CHAT_STORE_PATH", "/tmp/ollama-webchat/sessions.json")
try:
    Path(os.environ["CHAT_STORE_PATH"]).parent.mkdir(parents=True, exist_ok=True)
except OSError:
    pass

from chatapp.main import create_app  # noqa: E402


app = create_app()


class handler(Mangum):
    def __init__(self):
        super().__init__(app, lifespan="auto")
