class HarnessError(Exception):
    """Base class for harness failures."""


class SetupError(HarnessError):
    """A request or the harness itself could not be set up (bad parameter, bind/close failure)."""


class VerificationError(HarnessError, AssertionError):
    """Transferred bytes did not match the expected sequence."""
