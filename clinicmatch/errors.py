"""
Exception taxonomy for clinicmatch.

Only DirectoryWriteFailure, ClinicAlreadyProcessed and ConfigError escape a
match run. Identity failures are caught by the pool builder, logged, and the
offending sign-up is excluded.
"""


class ClinicMatchError(Exception):
    """Base class for all clinicmatch errors."""
    pass


class InvalidIdentity(ClinicMatchError):
    """Raised when text is not of the form 'Last, First (Tier)'."""
    pass


class UnresolvedIdentity(ClinicMatchError):
    """Raised when an identity has no entry in the candidate directory."""

    def __init__(self, identity: str, message: str = ""):
        self.identity = identity
        super().__init__(message or f"No directory entry for: {identity}")


class UnresolvedCancellation(UnresolvedIdentity):
    """Raised when a cancelled sign-up's base identity cannot be resolved."""

    def __init__(self, identity: str):
        super().__init__(identity, f"Cancellation for unknown candidate: {identity}")


class DirectoryWriteFailure(ClinicMatchError):
    """Raised when the candidate directory cannot persist a change."""
    pass


class ClinicAlreadyProcessed(ClinicMatchError):
    """Raised when match stats were already applied for a clinic date."""

    def __init__(self, variant: str, clinic_date):
        self.variant = variant
        self.clinic_date = clinic_date
        super().__init__(
            f"Clinic {variant} on {clinic_date.isoformat()} was already processed"
        )


class ConfigError(ClinicMatchError):
    """Raised for unknown variants or malformed variant files."""
    pass
