"""
Redis admission gate for registration submissions.
Implements SubmissionGate using SET NX with a TTL per identity key.

Circuit Breaker Pattern:
  On Redis failure, the gate "fails open" (admits the submission).
  Redis outages must not block registrations.
  The database unique constraints on email and mobile remain authoritative;
  the gate only rejects an obvious duplicate before its screenshot upload.

  Tradeoff: during an outage, a concurrent duplicate uploads a screenshot
  that is then orphaned when its insert hits the unique constraint.
"""

import uuid
from typing import Optional, Sequence

import redis.asyncio as redis

from gusto.core.logging import get_logger
from gusto.core.metrics import record_gate_decision, redis_connection_errors
from gusto.services.interfaces.submission_gate import SubmissionGate

logger = get_logger(__name__)

KEY_PREFIX = "registration:inflight:"

# Delete only if the key still holds our token
RELEASE_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
end
return 0
"""


class RedisSubmissionGate(SubmissionGate):
    """
    Redis-based in-flight gate.

    Strategy: claim `registration:inflight:<email>` and
    `registration:inflight:<mobile>` for the duration of the transaction.
    A second submission for either identity is rejected while the first
    is still running.
    """

    def __init__(self, client: redis.Redis, ttl_seconds: int = 60):
        self.redis = client
        self.ttl_seconds = ttl_seconds
        self.release_script = client.register_script(RELEASE_SCRIPT)

    async def acquire(self, keys: Sequence[str]) -> Optional[str]:
        token = uuid.uuid4().hex
        claimed: list[str] = []
        try:
            for key in keys:
                ok = await self.redis.set(KEY_PREFIX + key, token, nx=True, ex=self.ttl_seconds)
                if not ok:
                    await self.release(claimed, token)
                    record_gate_decision(False)
                    logger.info("submission_gate_rejected", key=key)
                    return None
                claimed.append(key)
        except redis.RedisError as e:
            # Circuit breaker: fail open
            redis_connection_errors.inc()
            logger.warning("submission_gate_fail_open", error=str(e))

        record_gate_decision(True)
        return token

    async def release(self, keys: Sequence[str], token: str) -> None:
        for key in keys:
            try:
                await self.release_script(keys=[KEY_PREFIX + key], args=[token])
            except redis.RedisError as e:
                # Best effort; the TTL expires the key anyway
                redis_connection_errors.inc()
                logger.warning("submission_gate_release_failed", key=key, error=str(e))
