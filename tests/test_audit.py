"""Tests for audit logging."""

from __future__ import annotations

import pytest

from copy_forge.core.audit import AuditLogger
from copy_forge.db.credential_store import CredentialStore
from tests.conftest import MockSupabaseClient


@pytest.fixture
def db():
    return MockSupabaseClient()


@pytest.fixture
def audit(db):
    return AuditLogger(db)


class TestAuditLogging:
    def test_log_creates_entry(self, audit):
        entry = audit.log(
            action="template.created",
            entity_type="prompt_template",
            entity_id="some-uuid",
            actor="user-1",
            details={"platform": "facebook"},
        )
        assert entry["action"] == "template.created"
        assert entry["actor"] == "user-1"
        assert entry["details"]["platform"] == "facebook"


class TestCredentialAudit:
    def test_connect_and_disconnect_are_audited(self, db, audit):
        store = CredentialStore(db, audit)
        store.save("user-1", "dropbox", "dbid:1", "token", refresh_token="rt")
        store.save("user-1", "dropbox", "dbid:1", "token-2", refresh_token="rt")
        assert store.deactivate("user-1", "dropbox") == 1

        actions = [e["action"] for e in db.select("audit_log")]
        assert actions == ["credential.connected", "credential.connected", "credential.disconnected"]
        assert len(db.select("credentials", filters={"is_active": True})) == 0
        assert len(db.select("credentials")) == 2
