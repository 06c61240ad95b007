from __future__ import annotations

from dataclasses import dataclass

import structlog

from seedgen.core.errors import WrongProvingKey
from seedgen.vrf.curve import (
    FIELD_SIZE,
    GENERATOR,
    GROUP_ORDER,
    add,
    address_of,
    hash_to_curve,
    is_on_curve,
    mul,
    output_from_gamma,
    projective_sum_denominator,
    scalar_from_curve_points,
)
from seedgen.vrf.proof import Proof

log = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class VerificationResult:
    ok: bool
    reason: str  # machine-friendly code, never exposed to callers of verify()


def coerce_proof(proof: Proof | bytes | str) -> Proof:
    """
    Accept a Proof, its 416-byte marshaled form, or that form as 0x-hex.
    Anything unparsable is a WrongProvingKey (no hint about what was wrong).
    """
    if isinstance(proof, Proof):
        return proof
    try:
        if isinstance(proof, str):
            return Proof.from_hex(proof)
        return Proof.from_bytes(bytes(proof))
    except (TypeError, ValueError) as exc:
        log.debug("vrf.malformed_proof", error=str(exc))
        raise WrongProvingKey("proof rejected") from None


def check(key_hash: bytes, message: int, proof: Proof) -> VerificationResult:
    """
    Run every verification step; the first failing one names the reason.
    """
    if proof.key_hash != key_hash:
        return VerificationResult(ok=False, reason="key_hash_mismatch")
    if proof.seed != message:
        return VerificationResult(ok=False, reason="seed_mismatch")

    for name, point in (
        ("pk", proof.pk),
        ("gamma", proof.gamma),
        ("c_gamma_witness", proof.c_gamma_witness),
        ("s_hash_witness", proof.s_hash_witness),
    ):
        if not is_on_curve(point):
            return VerificationResult(ok=False, reason=f"{name}_not_on_curve")

    if proof.c % GROUP_ORDER == 0 or not 0 < proof.s < GROUP_ORDER:
        return VerificationResult(ok=False, reason="scalar_out_of_range")
    if len(proof.u_witness) != 20:
        return VerificationResult(ok=False, reason="bad_u_witness")

    # u = c*pk + s*G, committed to by its address
    u = add(mul(proof.pk, proof.c), mul(GENERATOR, proof.s))
    if address_of(u) != proof.u_witness:
        return VerificationResult(ok=False, reason="u_witness_mismatch")

    h = hash_to_curve(proof.pk, proof.seed)

    if mul(proof.gamma, proof.c) != proof.c_gamma_witness:
        return VerificationResult(ok=False, reason="c_gamma_witness_mismatch")
    if mul(h, proof.s) != proof.s_hash_witness:
        return VerificationResult(ok=False, reason="s_hash_witness_mismatch")
    if proof.c_gamma_witness[0] == proof.s_hash_witness[0]:
        return VerificationResult(ok=False, reason="witnesses_not_distinct")

    z = projective_sum_denominator(proof.c_gamma_witness, proof.s_hash_witness)
    if (z * proof.z_inv) % FIELD_SIZE != 1:
        return VerificationResult(ok=False, reason="bad_z_inv")

    # v = c*gamma + s*H
    v = add(proof.c_gamma_witness, proof.s_hash_witness)
    if scalar_from_curve_points(h, proof.pk, proof.gamma, proof.u_witness, v) != proof.c:
        return VerificationResult(ok=False, reason="challenge_mismatch")

    return VerificationResult(ok=True, reason="ok")


def verify(key_hash: bytes, message: int, proof: Proof | bytes | str) -> int:
    """
    Verify `proof` over `message` under the key committed to by `key_hash` and
    return the VRF output.

    Raises WrongProvingKey on any failure. The output depends on the proof alone.
    """
    p = coerce_proof(proof)
    result = check(key_hash, message, p)
    if not result.ok:
        log.info("vrf.rejected", reason=result.reason, seed=message)
        raise WrongProvingKey("proof rejected")
    return output_from_gamma(p.gamma)


def output_of(proof: Proof | bytes | str) -> int:
    """
    Output a proof would yield, without verifying it.
    """
    return output_from_gamma(coerce_proof(proof).gamma)
