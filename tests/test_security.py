from utils.security import generate_jti, hash_password, needs_rehash, verify_password


def test_hash_then_verify():
    hashed = hash_password("s3cret-pass")
    assert hashed != "s3cret-pass"
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("wrong-pass", hashed)


def test_same_password_hashes_differently():
    assert hash_password("s3cret-pass") != hash_password("s3cret-pass")


def test_verify_rejects_empty_and_garbage_hashes():
    hashed = hash_password("s3cret-pass")
    assert not verify_password("", hashed)
    assert not verify_password("s3cret-pass", "")
    assert not verify_password("s3cret-pass", "not-an-argon2-hash")


def test_fresh_hash_needs_no_rehash():
    assert not needs_rehash(hash_password("s3cret-pass"))


def test_jti_is_unique_uuid_string():
    first, second = generate_jti(), generate_jti()
    assert first != second
    assert len(first) == 36
