from __future__ import annotations


class SeedGenError(Exception):
    """
    Base class for every rejection raised by the seed generator.

    `code` is a stable machine-friendly identifier (used by the API layer and logs).
    """

    code: str = "seedgen.error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)


# ---- Capability / lifecycle ----------------------------------------------


class ExecutorForbidden(SeedGenError):
    code = "access.executor_forbidden"


class OwnerForbidden(SeedGenError):
    code = "access.owner_forbidden"


class Paused(SeedGenError):
    code = "generator.paused"


class NotPaused(SeedGenError):
    code = "generator.not_paused"


class InvalidMaxDepth(SeedGenError):
    code = "generator.invalid_max_depth"


class InvalidOracleProvider(SeedGenError):
    code = "generator.invalid_oracle_provider"


# ---- Request / fulfill ---------------------------------------------------


class RequestNotFulfilled(SeedGenError):
    code = "generator.request_not_fulfilled"


class TooManyPendingReveals(SeedGenError):
    code = "generator.too_many_pending_reveals"


class InvalidRequest(SeedGenError):
    code = "generator.invalid_request"


# ---- Reveal / verification -----------------------------------------------


class NoInputSeed(SeedGenError):
    code = "generator.no_input_seed"


class WrongProvingKey(SeedGenError):
    code = "generator.wrong_proving_key"


# ---- Queries -------------------------------------------------------------


class InputSeedNotReady(SeedGenError):
    code = "generator.input_seed_not_ready"


class SecretSeedNotReady(SeedGenError):
    code = "generator.secret_seed_not_ready"
