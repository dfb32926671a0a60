"""
No-op submission gate - no pre-check.
Relies entirely on database unique constraints.
"""

from typing import Optional, Sequence

from gusto.services.interfaces.submission_gate import SubmissionGate


class NoopSubmissionGate(SubmissionGate):
    """
    Always admit. Used when Redis is disabled and in tests.
    """

    async def acquire(self, keys: Sequence[str]) -> Optional[str]:
        return "noop"

    async def release(self, keys: Sequence[str], token: str) -> None:
        pass
