"""
Error types raised by the chart engine.

Every error is raised where it is detected and never retried: the
computations are deterministic, so a second attempt cannot succeed.
"""


class FourPillarsError(ValueError):
    """Base class for all chart engine errors."""


class InvalidDateError(FourPillarsError):
    """Input could not be read as a date-time."""


class InvalidGenderError(FourPillarsError):
    """Gender outside of male/female."""


class InvalidArityError(FourPillarsError):
    """A four-pillar input that does not hold exactly four pillars."""


class InvalidSymbolError(FourPillarsError):
    """A stem or branch symbol outside the fixed sets."""


class MissingSolarTermError(FourPillarsError):
    """A boundary solar term is absent from the provided term set."""


class NoReferenceTermError(FourPillarsError):
    """No solar term found on the requested side of a birth moment."""


class InvalidCountError(FourPillarsError):
    """A negative number of luck pillars was requested."""
