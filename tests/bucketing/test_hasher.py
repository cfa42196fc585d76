import pytest

from src.bucketing.hasher import bucket_for, hash_value, scale_hash
from src.constants import MAX_HASH_VALUE, SEED_VALUE
from src.errors import InvalidArgument

# Published MurmurHash3 x86_32 vectors shared by every SDK implementation
MURMUR3_VECTORS = [
    ("", 0, 0x00000000),
    ("", 1, 0x514E28B7),
    ("", 0xFFFFFFFF, 0x81F16F39),
    ("aaaa", 0x9747B28C, 0x5A97808A),
    ("Hello, world!", 0x9747B28C, 0x24884CBA),
    ("The quick brown fox jumps over the lazy dog", 0x9747B28C, 0x2FA826CD),
    ("foo", 0, 4138058784),
]


@pytest.mark.parametrize("identifier,seed,expected", MURMUR3_VECTORS)
def test_hash_matches_shared_fixture(identifier, seed, expected):
    assert hash_value(identifier, seed) == expected


def test_default_seed_is_one():
    assert SEED_VALUE == 1
    assert hash_value("") == 0x514E28B7


def test_bucket_for_empty_string_is_deterministic():
    # 0x514E28B7 / 2^32 = 0.31759886...
    assert bucket_for("", 100) == 32
    assert bucket_for("", 10000) == 3176
    assert bucket_for("", 10000, multiplier=2) == 6353


def test_bucket_for_rejects_non_string():
    with pytest.raises(InvalidArgument):
        bucket_for(None, 100)
    with pytest.raises(InvalidArgument):
        bucket_for(12345, 100)


def test_scale_hash_bounds():
    # 最小値は1、最大値はscale
    assert scale_hash(0, 100) == 1
    assert scale_hash(MAX_HASH_VALUE - 1, 100) == 100
    assert scale_hash(0, 10000) == 1
    assert scale_hash(MAX_HASH_VALUE - 1, 10000) == 10000


def test_scale_hash_applies_multiplier_after_offset():
    # (10000 * 0.5 + 1) * 2
    assert scale_hash(2 ** 31, 10000, 2) == 10002
    assert scale_hash(2 ** 30, 10000, 2) == 5002


def test_bucket_for_is_stable_across_calls():
    values = {bucket_for("user_42", 10000) for _ in range(50)}
    assert len(values) == 1
    value = values.pop()
    assert 1 <= value <= 10000
