"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Input is malformed or out of range; rejected before any computation"""

    pass


class InconsistencyError(DomainException):
    """Input is well-formed but contradicts what the ledger already knows"""

    pass


class InconsistentSettlementError(InconsistencyError):
    """Settlement date falls before the account's earliest recorded activity"""

    pass


class UnknownRecurrenceError(InconsistencyError):
    """Recurrence kind cannot be mapped to a cycle"""

    pass
