"""
In-flight submission gate interface.
Allows swapping between an advisory Redis gate and no gate at all.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence


class SubmissionGate(ABC):
    """
    Advisory guard against two concurrent submissions for the same identity.

    Implementations:
    - NoopSubmissionGate: always admit, rely on database constraints
    - RedisSubmissionGate: SET NX per identity key, fail-open on Redis errors

    The database remains authoritative either way; the gate only stops a
    duplicate early, before its screenshot is uploaded.
    """

    @abstractmethod
    async def acquire(self, keys: Sequence[str]) -> Optional[str]:
        """
        Claim every key for this submission.

        Returns:
            A lease token if admitted (pass it to release)
            None if another submission holds one of the keys
        """
        pass

    @abstractmethod
    async def release(self, keys: Sequence[str], token: str) -> None:
        """Release keys claimed with `token`. Keys held by other tokens are left alone."""
        pass
