"""
Exceptions Module

Errors raised by the series expansion operators. All of them derive from
ValueError so callers validating inputs the usual way keep working.
"""


class ExpansionError(ValueError):
    """Base class for series expansion errors."""


class ExpansionDomainError(ExpansionError):
    """Degenerate geometry, e.g. a zero radius where the kernel is singular."""


class ExpansionOrderError(ExpansionError):
    """Requested order is outside what the auxiliary tables support."""
