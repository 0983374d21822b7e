# app/services/redis_service.py
from typing import Optional

import redis.asyncio as redis  # Versão asyncio para o FastAPI
from redis.exceptions import RedisError

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger("redis")


class RedisClient:
    def __init__(self, host: str = settings.REDIS_HOST, port: int = settings.REDIS_PORT):
        self.host = host
        self.port = port
        self._client: Optional[redis.Redis] = None

    async def connect(self):
        if not self._client:
            try:
                self._client = await redis.Redis(host=self.host, port=self.port, decode_responses=True)
                # Testa a conexão
                await self._client.ping()
                logger.info(f"Conectado ao Redis em {self.host}:{self.port}")
            except (RedisError, OSError) as e:
                logger.error(f"Falha ao conectar ao Redis: {e}")
                self._client = None

    async def disconnect(self):
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Desconectado do Redis.")

    @property
    async def client(self) -> Optional[redis.Redis]:
        if not self._client:
            await self.connect()  # Tenta conectar se ainda não conectado
        return self._client

    async def publish_message(self, channel: str, message: str) -> bool:
        r = await self.client
        if r:
            await r.publish(channel, message)
            logger.debug(f"Mensagem publicada no canal \"{channel}\"")
            return True
        logger.warning("Não foi possível publicar mensagem: cliente Redis não conectado.")
        return False

    async def subscribe_to_pattern(self, pattern: str):
        """Inscreve em todos os canais que casam com o padrão (ex: "pdv:*")."""
        r = await self.client
        if r:
            pubsub = r.pubsub()
            await pubsub.psubscribe(pattern)
            logger.info(f"Inscrito no padrão \"{pattern}\"")
            return pubsub
        logger.warning("Não foi possível inscrever-se: cliente Redis não conectado.")
        return None
