from infrastructure.realtime.session_store import SessionStore


def test_register_and_lookup():
    store = SessionStore()
    session = store.register("c1", "Alice", "general")
    assert store.lookup("c1") == session
    assert session.display_name == "Alice"
    assert session.room == "general"
    assert store.lookup("missing") is None


def test_register_overwrites_in_place():
    store = SessionStore()
    store.register("c1", "Alice", "general")
    store.register("c2", "Bob", "general")
    store.register("c1", "Alicia", "random")

    assert store.lookup("c1").room == "random"
    assert len(store) == 2
    # position of c1 is kept
    assert [s.id for s in store] == ["c1", "c2"]


def test_remove_is_idempotent():
    store = SessionStore()
    store.register("c1", "Alice", "general")

    removed = store.remove("c1")
    assert removed is not None and removed.display_name == "Alice"
    assert store.remove("c1") is None
    assert "c1" not in store
    assert len(store) == 0


def test_empty_strings_are_valid_values():
    store = SessionStore()
    store.register("c1", "", "")
    session = store.lookup("c1")
    assert session.display_name == ""
    assert session.room == ""


def test_iteration_is_a_snapshot():
    store = SessionStore()
    store.register("c1", "Alice", "general")
    store.register("c2", "Bob", "general")
    for s in store:
        store.remove(s.id)
    assert len(store) == 0
