"""
Resume Record Repository

Redis-backed store for the record written when a payment is created, so
status tracking can resume after the payer returns from the gateway.

Keys:
- payment_resume:{provider_order_id}: JSON ResumeRecordDTO, expires after the TTL
- payment_resume:last:{client_id}: provider order id of the record that client
  saved most recently (one pointer per browser, never shared)
"""

import logging

from pydantic import ValidationError
from redis.asyncio import Redis

from models.resume_record import ResumeRecordDTO

logger = logging.getLogger(__name__)

KEY_PREFIX = "payment_resume"
LAST_KEY_PREFIX = f"{KEY_PREFIX}:last"


class ResumeRecordRepository:
    """
    Usage:
        repo = ResumeRecordRepository(redis, ttl_seconds=86400)
        await repo.save(record, client_id="b7e1...")
        record = await repo.get("6712c0ffee")
        record = await repo.get_last("b7e1...")
    """

    def __init__(self, redis: Redis, ttl_seconds: int):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def _key(provider_order_id: str) -> str:
        return f"{KEY_PREFIX}:{provider_order_id}"

    @staticmethod
    def _last_key(client_id: str) -> str:
        return f"{LAST_KEY_PREFIX}:{client_id}"

    async def save(self, record: ResumeRecordDTO, client_id: str | None = None) -> None:
        """
        Store a record. With a client id, also mark it as that client's most
        recent record so ``get_last`` can find it without an order id.
        """
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.set(self._key(record.provider_order_id), record.model_dump_json(by_alias=True), ex=self.ttl_seconds)
            if client_id:
                pipe.set(self._last_key(client_id), record.provider_order_id, ex=self.ttl_seconds)
            await pipe.execute()
        logger.info(f"[ResumeRecord] Saved record for {record.provider_order_id} (ttl: {self.ttl_seconds}s)")

    async def get(self, provider_order_id: str) -> ResumeRecordDTO | None:
        """
        Returns:
            The stored record, or None if absent, expired or unreadable
        """
        raw = await self.redis.get(self._key(provider_order_id))
        if raw is None:
            return None
        try:
            return ResumeRecordDTO.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"[ResumeRecord] Discarding unreadable record for {provider_order_id}: {e}")
            return None

    async def get_last(self, client_id: str | None) -> ResumeRecordDTO | None:
        """Most recent record saved by ``client_id``; None without a client id."""
        if not client_id:
            return None
        last_id = await self.redis.get(self._last_key(client_id))
        if last_id is None:
            return None
        if isinstance(last_id, bytes):
            last_id = last_id.decode()
        return await self.get(last_id)

    async def delete(self, provider_order_id: str, client_id: str | None = None) -> None:
        await self.redis.delete(self._key(provider_order_id))
        if not client_id:
            return
        last_id = await self.redis.get(self._last_key(client_id))
        if isinstance(last_id, bytes):
            last_id = last_id.decode()
        if last_id == provider_order_id:
            await self.redis.delete(self._last_key(client_id))
