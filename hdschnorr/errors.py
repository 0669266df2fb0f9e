# hdschnorr/errors.py


class HDSchnorrError(Exception):
    """Base class for every error raised by hdschnorr."""


class NotFound(HDSchnorrError):
    """The key name is undeclared or has no provisioned seed yet."""


class RandomnessUnavailable(HDSchnorrError):
    pass


class DerivationFailure(HDSchnorrError):
    """A derivation step produced an out-of-range scalar or an invalid point."""


class SigningFailure(HDSchnorrError):
    pass


class PersistenceFailure(HDSchnorrError):
    """A durable write (seed or counter) could not be committed."""
