"""
Shared fixtures: an in-memory session store and a seeded engine.
"""

import copy
import random

import pytest

from kubb_trainer.database.db import PersistenceError
from kubb_trainer.engine import SessionEngine


class FakeStore:
    """Dict-backed stand-in for Database's session API."""

    def __init__(self):
        self.sessions = {}
        self.saves = 0
        self.fail_updates = False
        self.fail_deletes = False

    def create_session(self, session):
        self.sessions[session.id] = copy.deepcopy(session)
        return session.id

    def update_session(self, session):
        if self.fail_updates:
            raise PersistenceError("disk full")
        self.saves += 1
        self.sessions[session.id] = copy.deepcopy(session)

    def get_session(self, session_id):
        session = self.sessions.get(session_id)
        return copy.deepcopy(session) if session else None

    def get_active_session(self):
        for session in self.sessions.values():
            if not session.is_complete:
                return copy.deepcopy(session)
        return None

    def delete_session(self, session_id):
        if self.fail_deletes:
            raise PersistenceError("database is locked")
        self.sessions.pop(session_id, None)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def engine(store):
    return SessionEngine(store, rng=random.Random(7))
