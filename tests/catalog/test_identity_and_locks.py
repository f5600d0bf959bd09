"""Tests for the static identity store and the keyed lock."""

from __future__ import annotations

import threading
import time

from appcatalog.catalog.identity import StaticIdentityStore, UserRecord
from appcatalog.catalog.locks import KeyedLock


class TestStaticIdentityStore:
    def test_roles_and_permissions(self):
        store = StaticIdentityStore([UserRecord("alice", 1, frozenset({"manager"}))])
        store.add_user("root", 1, permissions=["/permission/admin/manage"])
        assert store.roles_of("alice", 1) == {"manager"}
        assert store.is_authorized("root", 1, "/permission/admin/manage") is True
        assert store.is_authorized("alice", 1, "/permission/admin/manage") is False
        assert len(store) == 2

    def test_unknown_user_and_other_tenant(self):
        store = StaticIdentityStore()
        store.add_user("alice", 1, roles=["manager"])
        assert store.roles_of("alice", 2) == set()
        assert store.roles_of("nobody", 1) == set()
        assert store.is_authorized("nobody", 1, "x") is False

    def test_roles_copy_is_isolated(self):
        store = StaticIdentityStore()
        store.add_user("alice", 1, roles=["manager"])
        store.roles_of("alice", 1).add("admin")
        assert store.roles_of("alice", 1) == {"manager"}


class TestKeyedLock:
    def test_lock_dropped_after_release(self):
        locks = KeyedLock()
        with locks.hold("a"):
            assert len(locks) == 1
        assert len(locks) == 0

    def test_same_key_serialises(self):
        locks = KeyedLock()
        active = []
        overlap = []

        def worker():
            with locks.hold((1, "notes")):
                active.append(1)
                if len(active) > 1:
                    overlap.append(True)
                time.sleep(0.01)
                active.pop()

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert overlap == []
        assert len(locks) == 0

    def test_different_keys_independent(self):
        locks = KeyedLock()
        with locks.hold("a"):
            acquired = threading.Event()

            def other():
                with locks.hold("b"):
                    acquired.set()

            t = threading.Thread(target=other)
            t.start()
            assert acquired.wait(timeout=2)
            t.join()
