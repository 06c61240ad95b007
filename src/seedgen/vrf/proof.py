from __future__ import annotations

from dataclasses import dataclass

from seedgen.vrf.curve import Point, decode_point, encode_point, key_hash, word

# pk(64) gamma(64) c(32) s(32) seed(32) uWitness(32) cGammaWitness(64) sHashWitness(64) zInv(32)
PROOF_LENGTH = 416


@dataclass(frozen=True, slots=True)
class Proof:
    """
    VRF proof over `seed` under public key `pk`.

    gamma = sk * H(pk, seed) carries the output; (c, s) is the Schnorr-style
    challenge/response; the witnesses let a verifier check the linear
    combinations cheaply and are re-checked by ours.
    """

    pk: Point
    gamma: Point
    c: int
    s: int
    seed: int
    u_witness: bytes
    c_gamma_witness: Point
    s_hash_witness: Point
    z_inv: int

    @property
    def key_hash(self) -> bytes:
        return key_hash(self.pk)

    def to_bytes(self) -> bytes:
        return b"".join(
            (
                encode_point(self.pk),
                encode_point(self.gamma),
                word(self.c),
                word(self.s),
                word(self.seed),
                bytes(12) + self.u_witness,
                encode_point(self.c_gamma_witness),
                encode_point(self.s_hash_witness),
                word(self.z_inv),
            )
        )

    def to_hex(self) -> str:
        return "0x" + self.to_bytes().hex()

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Proof":
        if len(raw) != PROOF_LENGTH:
            raise ValueError(f"proof must be {PROOF_LENGTH} bytes, got {len(raw)}")

        def _int(start: int) -> int:
            return int.from_bytes(raw[start:start + 32], "big")

        padded_witness = raw[224:256]
        if any(padded_witness[:12]):
            raise ValueError("u_witness padding must be zero")

        return cls(
            pk=decode_point(raw[0:64]),
            gamma=decode_point(raw[64:128]),
            c=_int(128),
            s=_int(160),
            seed=_int(192),
            u_witness=padded_witness[12:],
            c_gamma_witness=decode_point(raw[256:320]),
            s_hash_witness=decode_point(raw[320:384]),
            z_inv=_int(384),
        )

    @classmethod
    def from_hex(cls, text: str) -> "Proof":
        raw = text[2:] if text.startswith("0x") else text
        return cls.from_bytes(bytes.fromhex(raw))
