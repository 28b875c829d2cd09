"""clinicmatch: sign-up ranking and room assignment for volunteer student clinics."""

__version__ = "0.3.0"
