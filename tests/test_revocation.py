import pytest

from models.token_blacklist import TokenBlacklist
from tests.conftest import BrokenStorage
from utils.exceptions import TransientStoreError
from utils.revocation import RevocationStore


@pytest.fixture
def revocations(storage):
    return RevocationStore(storage)


def test_unknown_jti_is_not_revoked(revocations):
    assert revocations.is_revoked("never-seen") is False


def test_revoke_then_check(revocations):
    revocations.revoke("jti-1", actor_user_id="u-1")
    assert revocations.is_revoked("jti-1") is True
    assert revocations.is_revoked("jti-2") is False


def test_revoke_twice_keeps_one_entry(revocations, storage):
    revocations.revoke("jti-1")
    revocations.revoke("jti-1")
    entries = storage.get_session().query(TokenBlacklist).filter_by(jti="jti-1").all()
    assert len(entries) == 1
    assert revocations.is_revoked("jti-1")


def test_deactivated_entry_does_not_count_until_revoked_again(revocations, storage):
    revocations.revoke("jti-1")
    entry = storage.get_session().query(TokenBlacklist).filter_by(jti="jti-1").one()
    entry.deactivate()
    storage.save()
    assert revocations.is_revoked("jti-1") is False

    revocations.revoke("jti-1")
    assert revocations.is_revoked("jti-1") is True


def test_uncommitted_revoke_joins_callers_transaction(revocations, storage):
    revocations.revoke("jti-1", commit=False)
    storage.rollback()
    assert revocations.is_revoked("jti-1") is False


def test_store_failure_surfaces_as_transient_error():
    broken = RevocationStore(BrokenStorage())
    with pytest.raises(TransientStoreError):
        broken.is_revoked("jti-1")
    with pytest.raises(TransientStoreError):
        broken.revoke("jti-1")
