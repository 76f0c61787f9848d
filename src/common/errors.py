# ABOUTME: Declares the error taxonomy raised by the heap and the problem generator.
# ABOUTME: All errors subclass ValueError so callers can treat them as bad input.


class FlashcardError(ValueError):
    """Base class for every precondition failure in the practice engine."""


class HeapError(FlashcardError):
    """Raised when a heap entry is rejected."""


class InvalidPriority(HeapError):
    """Priority is NaN, infinite, or not a number at all."""


class NegativePriority(HeapError):
    """Priority is below zero."""


class EmptyOperandSet(FlashcardError):
    """No usable first operand remains after filtering to 1-12."""


class InvalidConfig(FlashcardError):
    """Session settings or generator config cannot produce a session."""


class InvalidLearnerId(FlashcardError):
    """Learner identifier is missing or blank."""
