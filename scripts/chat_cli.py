#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Import project modules
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from chatcore.core.config import load_config
from chatcore.core.controller import ChatController
from chatcore.errors import ChatError, TransportError


class PrintRenderer:
    """Writes new transcript lines to stdout; history is not replayed."""

    def __init__(self) -> None:
        self.live = False

    def render(self, role: str, content: str, autoscroll: bool = True) -> None:
        if self.live and role != "user":
            print(f"[{role}] {content}")

    def clear(self) -> None:
        pass

    def set_pending(self, pending: bool) -> None:
        if self.live and pending:
            print("... thinking", flush=True)


def _print_sessions(ctrl: ChatController) -> None:
    active = ctrl.store.active_session_id
    for s in ctrl.store.list_sessions():
        marker = "*" if s.id == active else " "
        print(f"{marker} {s.id:>3}  {s.name}  ({len(s.messages)} messages)")


def main() -> int:
    ap = argparse.ArgumentParser(description="Chat with a local Ollama server from the terminal")
    ap.add_argument("--profile", default="default", help="Config profile (configs/<profile>.yaml)")
    ap.add_argument("--list", action="store_true", help="List sessions and exit")
    ap.add_argument("--models", action="store_true", help="List installed models and exit")
    ap.add_argument("--new", action="store_true", help="Start a new session before sending")
    ap.add_argument("--session", type=int, help="Session id to switch to")
    ap.add_argument("--model", help="Model name (defaults to config / first installed)")
    ap.add_argument("--prompt", help="Message to send")
    args = ap.parse_args()

    renderer = PrintRenderer()
    ctrl = ChatController.from_config(load_config(args.profile), renderer=renderer)

    if args.list:
        _print_sessions(ctrl)
        return 0

    try:
        if args.models or not args.model:
            ctrl.load_models()
    except TransportError as e:
        print(f"Could not list models: {e}")
        if args.models:
            return 2

    if args.models:
        for name in ctrl.models.names:
            marker = "*" if name == ctrl.models.selected else " "
            print(f"{marker} {name}")
        return 0

    try:
        if args.session is not None:
            ctrl.switch_to(args.session)
        if args.new:
            ctrl.new_session()
    except ChatError as e:
        print(str(e))
        return 2

    if not args.prompt:
        _print_sessions(ctrl)
        return 0

    renderer.live = True
    result = asyncio.run(ctrl.submit(args.prompt, model=args.model))
    return 0 if result.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
