from __future__ import annotations

import secrets
from dataclasses import dataclass

from seedgen.vrf.curve import (
    FIELD_SIZE,
    GENERATOR,
    GROUP_ORDER,
    Point,
    address_of,
    encode_point,
    hash_to_curve,
    key_hash,
    keccak256,
    mul,
    projective_sum_denominator,
    scalar_from_curve_points,
    word,
)
from seedgen.vrf.proof import Proof


@dataclass(frozen=True, slots=True)
class KeyPair:
    """
    Oracle proving key. Only the key hash is configured on the generator.
    """

    secret_key: int
    public_key: Point

    @classmethod
    def from_secret(cls, secret_key: int) -> "KeyPair":
        if not 0 < secret_key < GROUP_ORDER:
            raise ValueError("secret_key out of range")
        return cls(secret_key=secret_key, public_key=mul(GENERATOR, secret_key))

    @classmethod
    def generate(cls) -> "KeyPair":
        return cls.from_secret(secrets.randbelow(GROUP_ORDER - 1) + 1)

    @property
    def key_hash(self) -> bytes:
        return key_hash(self.public_key)

    def prove(self, seed: int) -> Proof:
        return prove(self.secret_key, seed)


def _nonce(secret_key: int, h: Point, counter: int) -> int:
    k = int.from_bytes(keccak256(word(secret_key) + encode_point(h) + word(counter)), "big") % GROUP_ORDER
    return k or 1


def prove(secret_key: int, seed: int) -> Proof:
    """
    Build a proof that gamma = sk * H(pk, seed).

    s = k - c*sk, so c*pk + s*G = k*G and c*gamma + s*H = k*H.
    """
    pk = mul(GENERATOR, secret_key)
    h = hash_to_curve(pk, seed)
    gamma = mul(h, secret_key)

    counter = 0
    while True:
        k = _nonce(secret_key, h, counter)
        counter += 1

        u_witness = address_of(mul(GENERATOR, k))
        c = scalar_from_curve_points(h, pk, gamma, u_witness, mul(h, k))
        s = (k - c * secret_key) % GROUP_ORDER
        if s == 0 or c % GROUP_ORDER == 0:
            continue

        c_gamma = mul(gamma, c)
        s_hash = mul(h, s)
        if c_gamma[0] == s_hash[0]:
            continue

        z_inv = pow(projective_sum_denominator(c_gamma, s_hash), -1, FIELD_SIZE)
        return Proof(
            pk=pk,
            gamma=gamma,
            c=c,
            s=s,
            seed=seed,
            u_witness=u_witness,
            c_gamma_witness=c_gamma,
            s_hash_witness=s_hash,
            z_inv=z_inv,
        )
