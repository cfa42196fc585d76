import mmh3

from src.constants import MAX_HASH_VALUE, SEED_VALUE
from src.errors import InvalidArgument


def hash_value(identifier: str, seed: int = SEED_VALUE) -> int:
    """
    MurmurHash3 (x86, 32bit) の符号なしハッシュ値を返す。
    全SDK共通の互換性契約なので、アルゴリズムとシードは変更しないこと。
    """
    if not isinstance(identifier, str):
        raise InvalidArgument(f"identifier must be a string, got {type(identifier).__name__}")
    return mmh3.hash(identifier, seed, signed=False)


def scale_hash(hash_val: int, scale: int, multiplier: int = 1) -> int:
    """
    hash / 2^32 の比率を [1, scale] に写像し、multiplier 倍して切り捨てる。
    (scale * ratio + 1) * multiplier の順序は他SDKとのビット互換のため固定。
    """
    ratio = hash_val / MAX_HASH_VALUE
    return int((scale * ratio + 1) * multiplier)


def bucket_for(identifier: str, scale: int, multiplier: int = 1) -> int:
    return scale_hash(hash_value(identifier), scale, multiplier)
