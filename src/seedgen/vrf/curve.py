"""
secp256k1 primitives for the oracle VRF.

Encoding conventions follow the oracle network's on-chain verifier:
every scalar / coordinate is a 32-byte big-endian word, points are packed as
x || y, and domain prefixes are full 32-byte words.

Curve arithmetic comes from py_ecc; keccak-256 from pycryptodome.
The point at infinity is represented as (0, 0), the way py_ecc returns it.
"""

from __future__ import annotations

from Crypto.Hash import keccak
from py_ecc.secp256k1.secp256k1 import G, N, P
from py_ecc.secp256k1.secp256k1 import add as _ecc_add
from py_ecc.secp256k1.secp256k1 import multiply as _ecc_multiply

Point = tuple[int, int]

FIELD_SIZE: int = P
GROUP_ORDER: int = N
GENERATOR: Point = G
INFINITY: Point = (0, 0)

HASH_TO_CURVE_PREFIX = 1
SCALAR_FROM_CURVE_POINTS_PREFIX = 2
RANDOM_OUTPUT_PREFIX = 3

_WORD = 32


def keccak256(data: bytes) -> bytes:
    h = keccak.new(digest_bits=256)
    h.update(data)
    return h.digest()


def word(value: int) -> bytes:
    if value < 0 or value >= 1 << 256:
        raise ValueError("value does not fit in 256 bits")
    return value.to_bytes(_WORD, "big")


def encode_point(p: Point) -> bytes:
    return word(p[0]) + word(p[1])


def decode_point(raw: bytes) -> Point:
    if len(raw) != 2 * _WORD:
        raise ValueError("point must be 64 bytes")
    return int.from_bytes(raw[:_WORD], "big"), int.from_bytes(raw[_WORD:], "big")


def y_squared(x: int) -> int:
    return (pow(x, 3, FIELD_SIZE) + 7) % FIELD_SIZE


def square_root(v: int) -> int:
    # p = 3 mod 4
    return pow(v, (FIELD_SIZE + 1) // 4, FIELD_SIZE)


def is_on_curve(p: Point) -> bool:
    x, y = p
    if not (0 <= x < FIELD_SIZE and 0 <= y < FIELD_SIZE):
        return False
    if p == INFINITY:
        return False
    return (y * y) % FIELD_SIZE == y_squared(x)


def field_hash(data: bytes) -> int:
    """
    keccak256 re-applied until the result is a field element.
    """
    x = int.from_bytes(keccak256(data), "big")
    while x >= FIELD_SIZE:
        x = int.from_bytes(keccak256(word(x)), "big")
    return x


def hash_to_curve(pk: Point, seed: int) -> Point:
    """
    Try-and-increment map of (pk, seed) onto the curve, with an even y.
    """
    x = field_hash(word(HASH_TO_CURVE_PREFIX) + encode_point(pk) + word(seed))
    while True:
        ysq = y_squared(x)
        y = square_root(ysq)
        if (y * y) % FIELD_SIZE == ysq:
            break
        x = field_hash(word(x))
    if y % 2 == 1:
        y = FIELD_SIZE - y
    return x, y


def address_of(p: Point) -> bytes:
    """
    Last 20 bytes of keccak256(x || y); stands in for a point in the challenge hash.
    """
    return keccak256(encode_point(p))[12:]


def mul(p: Point, k: int) -> Point:
    return _ecc_multiply(p, k % GROUP_ORDER)


def add(p: Point, q: Point) -> Point:
    if p == INFINITY:
        return q
    if q == INFINITY:
        return p
    return _ecc_add(p, q)


def scalar_from_curve_points(h: Point, pk: Point, gamma: Point, u_witness: bytes, v: Point) -> int:
    if len(u_witness) != 20:
        raise ValueError("u_witness must be a 20-byte address")
    blob = (
        word(SCALAR_FROM_CURVE_POINTS_PREFIX)
        + encode_point(h)
        + encode_point(pk)
        + encode_point(gamma)
        + encode_point(v)
        + u_witness
    )
    return int.from_bytes(keccak256(blob), "big")


def projective_sum_denominator(p1: Point, p2: Point) -> int:
    """
    Denominator z of p1 + p2 when the sum is accumulated projectively from two
    affine points: with lz = p2.x - p1.x the x and y denominators are lz^2 and
    lz^3, so z = lz^5. The proof ships zInv = z^-1 mod p.
    """
    lz = (p2[0] - p1[0]) % FIELD_SIZE
    return pow(lz, 5, FIELD_SIZE)


def key_hash(pk: Point) -> bytes:
    return keccak256(encode_point(pk))


def output_from_gamma(gamma: Point) -> int:
    return int.from_bytes(keccak256(word(RANDOM_OUTPUT_PREFIX) + encode_point(gamma)), "big")
