import pytest

from chatcore.core.controller import ChatController
from chatcore.store.persistence import MemoryPersistence
from chatcore.store.sessions import SessionStore


class FakeTransport:
    """Stands in for OllamaClient; records every call."""

    def __init__(self, reply="Hello from the model", models=None):
        self.reply = reply
        self.models = models if models is not None else [{"name": "llama3:8b"}, {"name": "mistral:7b"}]
        self.error = None
        self.list_error = None
        self.before_reply = None
        self.calls = []
        self.list_calls = 0

    def list_models(self):
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        return [dict(m) for m in self.models]

    def chat(self, model, messages, options=None):
        self.calls.append({"model": model, "messages": [dict(m) for m in messages], "options": options})
        if self.before_reply is not None:
            self.before_reply()
        if self.error is not None:
            raise self.error
        return self.reply

    def show(self, model):
        if model not in [m["name"] for m in self.models]:
            from chatcore.errors import TransportError

            raise TransportError("HTTP error! status: 404, details: model not found", kind="http_status", status=404)
        return {"details": {"family": "llama"}, "modelfile": f"FROM {model}"}


class RecordingRenderer:
    def __init__(self):
        self.events = []

    def render(self, role, content, autoscroll=True):
        self.events.append(("render", role, content, autoscroll))

    def clear(self):
        self.events.append(("clear",))

    def set_pending(self, pending):
        self.events.append(("pending", pending))

    def rendered(self, role=None):
        return [e for e in self.events if e[0] == "render" and (role is None or e[1] == role)]


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def persistence():
    return MemoryPersistence()


@pytest.fixture
def store(persistence):
    return SessionStore(persistence)


@pytest.fixture
def controller(store, transport, renderer):
    return ChatController(store, transport, renderer)


@pytest.fixture
def ready_controller(controller):
    """Controller with the model list loaded and a model selected."""
    controller.load_models()
    return controller
