"""Tests for identifier to session bookkeeping."""

from __future__ import annotations

from octchat.services.registry import ConnectionRegistry


class _Handle:
    def __init__(self, name: str) -> None:
        self.name = name


def test_latest_registration_wins() -> None:
    registry: ConnectionRegistry[_Handle] = ConnectionRegistry()
    first, second = _Handle("first"), _Handle("second")

    assert registry.upsert("octalice", first) is None
    assert registry.upsert("octalice", second) is first

    assert len(registry) == 1
    assert registry.get("octalice") is second


def test_remove_session_by_reverse_lookup() -> None:
    registry: ConnectionRegistry[_Handle] = ConnectionRegistry()
    alice, bob = _Handle("alice"), _Handle("bob")
    registry.upsert("octalice", alice)
    registry.upsert("octbob", bob)

    assert registry.remove_session(alice) == ["octalice"]
    assert "octalice" not in registry
    assert registry.identifiers() == ["octbob"]


def test_remove_unknown_session_is_noop() -> None:
    registry: ConnectionRegistry[_Handle] = ConnectionRegistry()
    registry.upsert("octalice", _Handle("alice"))

    assert registry.remove_session(_Handle("stranger")) == []
    assert len(registry) == 1


def test_replaced_session_no_longer_owns_identifier() -> None:
    registry: ConnectionRegistry[_Handle] = ConnectionRegistry()
    old, new = _Handle("old"), _Handle("new")
    registry.upsert("octalice", old)
    registry.upsert("octalice", new)

    assert registry.remove_session(old) == []
    assert registry.get("octalice") is new


def test_remove_session_drops_every_identifier_it_holds() -> None:
    registry: ConnectionRegistry[_Handle] = ConnectionRegistry()
    shared, bob = _Handle("shared"), _Handle("bob")
    registry.upsert("octalice", shared)
    registry.upsert("octbob", bob)
    registry.upsert("octcarol", shared)

    assert registry.remove_session(shared) == ["octalice", "octcarol"]
    assert registry.identifiers() == ["octbob"]
