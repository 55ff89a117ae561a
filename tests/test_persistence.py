import json

from chatcore.core.state import Message, Role, Session
from chatcore.store.persistence import JsonFilePersistence, MemoryPersistence


def _sample_sessions():
    return [
        Session(id=1, name="Chat 1", messages=[Message("user", "hi"), Message("assistant", "hello")], created_at=10.0),
        Session(id=3, name="Groceries", messages=[Message("user", "milk?")], created_at=20.0),
    ]


def test_json_round_trip_preserves_ids_names_and_message_order(tmp_path):
    p = JsonFilePersistence(tmp_path / "sessions.json")
    saved = _sample_sessions()
    p.save(saved, next_id=4, active_id=3)

    loaded = p.load()
    assert [s.id for s in loaded] == [1, 3]
    assert [s.name for s in loaded] == ["Chat 1", "Groceries"]
    assert [(m.role, m.content) for m in loaded[0].messages] == [(Role.USER, "hi"), (Role.ASSISTANT, "hello")]
    assert loaded == saved


def test_json_meta_is_persisted(tmp_path):
    p = JsonFilePersistence(tmp_path / "sessions.json")
    p.save(_sample_sessions(), next_id=7, active_id=3)
    assert p.load_meta() == {"next_id": 7, "active_session_id": 3}


def test_json_document_is_keyed_by_session_id(tmp_path):
    path = tmp_path / "sessions.json"
    JsonFilePersistence(path).save(_sample_sessions(), next_id=4)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert list(data["sessions"].keys()) == ["1", "3"]
    assert data["version"] == 1


def test_missing_file_loads_as_none(tmp_path):
    p = JsonFilePersistence(tmp_path / "nope.json")
    assert p.load() is None
    assert p.load_meta() == {}


def test_corrupt_file_loads_as_none(tmp_path):
    path = tmp_path / "sessions.json"
    path.write_text("{not json", encoding="utf-8")
    assert JsonFilePersistence(path).load() is None


def test_save_creates_parent_dirs_and_leaves_no_temp_file(tmp_path):
    path = tmp_path / "nested" / "dir" / "sessions.json"
    JsonFilePersistence(path).save(_sample_sessions())
    assert path.exists()
    assert not (path.parent / "sessions.json.tmp").exists()


def test_memory_persistence_returns_copies():
    p = MemoryPersistence()
    sessions = _sample_sessions()
    p.save(sessions, next_id=4)
    sessions[0].messages.append(Message("user", "later"))

    loaded = p.load()
    assert len(loaded[0].messages) == 2
    loaded[0].name = "changed"
    assert p.load()[0].name == "Chat 1"
    assert p.saves == 1


def test_damaged_record_is_skipped_and_the_rest_kept(tmp_path):
    path = tmp_path / "sessions.json"
    path.write_text(
        json.dumps(
            {
                "version": 1,
                "next_id": 3,
                "active_session_id": 1,
                "sessions": {
                    "1": {"id": 1, "name": "Good", "messages": [{"role": "user", "content": "hi"}]},
                    "2": {"id": 2, "name": "Bad", "messages": [{"role": "tool", "content": "x"}]},
                },
            }
        ),
        encoding="utf-8",
    )
    loaded = JsonFilePersistence(path).load()
    assert [s.id for s in loaded] == [1]
    assert loaded[0].messages[0].content == "hi"
