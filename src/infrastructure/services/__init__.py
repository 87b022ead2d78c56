"""Infrastructure Services.

Concrete implementations of the domain's outbound collaborators.
"""

from .reset_dispatcher import EmailResetDispatcher

__all__ = ["EmailResetDispatcher"]
