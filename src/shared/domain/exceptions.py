"""Error taxonomy shared by every bounded context.

Nothing here is fatal to the process.  Each family is recoverable and
returns control to the operator with the draft intact:

- ``ValidationViolation``: user-correctable input (bad amount, missing
  proof, credit exceeded, incomplete header).
- ``DataIntegrityWarning``: advisory catalog/stock defects.
- ``ResolutionError``: a line could not be mapped to a catalog row.
- ``PersistenceError``: an external collaborator failed; retryable.
"""

from __future__ import annotations


class ValidationViolation(Exception):
    """A recoverable, user-correctable rule violation."""


class DataIntegrityWarning(Exception):
    """Advisory signal that stored data violates an expected invariant."""


class ResolutionError(Exception):
    """A selector could not be resolved to a single catalog entry."""


class PersistenceError(Exception):
    """An external persistence collaborator failed.

    ``retryable`` tells the caller whether resubmitting the same draft
    can succeed.
    """

    def __init__(self, message: str = "", *, retryable: bool = True) -> None:
        super().__init__(message)
        self.retryable = retryable
