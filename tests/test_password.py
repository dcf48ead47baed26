"""Password hashing tests."""

from tokengate.auth.password import dummy_hash, hash_password, verify_password


def test_hash_and_verify():
    hashed = hash_password("P4$$w0rdtest", rounds=4)
    assert hashed.startswith("$2b$04$")
    assert verify_password("P4$$w0rdtest", hashed)
    assert not verify_password("wrong-password", hashed)


def test_hashes_are_salted():
    assert hash_password("same-password", rounds=4) != hash_password("same-password", rounds=4)


def test_malformed_hash_never_matches():
    assert not verify_password("anything", "not-a-bcrypt-hash")
    assert not verify_password("anything", "")


def test_dummy_hash_is_cached_and_unmatched():
    assert dummy_hash(4) is dummy_hash(4)
    assert not verify_password("", dummy_hash(4))
