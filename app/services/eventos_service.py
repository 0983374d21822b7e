# app/services/eventos_service.py
"""
Feed de alterações: cada escrita publica um Evento para os assinantes locais
(WebSocket, testes) e, se configurado, para as outras instâncias via Redis.
"""
import asyncio
import uuid
from typing import Any, Awaitable, Callable, Optional, Set

from pydantic import BaseModel, ValidationError

from app.core.config import settings
from app.core.logging import get_logger
from app.schemas.evento import Evento
from app.services.redis_service import RedisClient

logger = get_logger("eventos")


class EventosService:
    def __init__(self, redis: Optional[RedisClient] = None, prefixo_canal: str = settings.REDIS_CHANNEL_PREFIX):
        self.redis = redis
        self.prefixo_canal = prefixo_canal
        self.origem = uuid.uuid4().hex  # Identifica esta instância no Redis
        self._assinantes: Set[asyncio.Queue] = set()

    def assinar(self, maxsize: int = 1000) -> asyncio.Queue:
        fila: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._assinantes.add(fila)
        return fila

    def cancelar_assinatura(self, fila: asyncio.Queue) -> None:
        self._assinantes.discard(fila)

    @property
    def total_assinantes(self) -> int:
        return len(self._assinantes)

    def repassar_local(self, evento: Evento) -> None:
        for fila in list(self._assinantes):
            try:
                fila.put_nowait(evento)
            except asyncio.QueueFull:
                logger.warning(f"Assinante lento: evento {evento.tabela}/{evento.tipo} descartado")

    async def publicar(self, tabela: str, tipo: str, dados: Any) -> Evento:
        if isinstance(dados, BaseModel):
            dados = dados.model_dump(mode="json")
        evento = Evento(tabela=tabela, tipo=tipo, dados=dados, origem=self.origem)
        self.repassar_local(evento)
        if self.redis:
            try:
                await self.redis.publish_message(
                    channel=f"{self.prefixo_canal}:{tabela}", message=evento.model_dump_json()
                )
            except Exception as e:
                # O banco já foi alterado; a falha no Redis só atrasa as outras instâncias
                logger.error(f"Falha ao publicar evento no Redis: {e}")
        return evento

    async def escutar_remoto(self, aplicar: Callable[[Evento], Awaitable[None]]) -> None:
        """Consome eventos das outras instâncias até ser cancelado."""
        if not self.redis:
            return
        pubsub = await self.redis.subscribe_to_pattern(f"{self.prefixo_canal}:*")
        if pubsub is None:
            return
        try:
            async for mensagem in pubsub.listen():
                if mensagem.get("type") != "pmessage":
                    continue
                try:
                    evento = Evento.model_validate_json(mensagem["data"])
                except ValidationError as e:
                    logger.warning(f"Mensagem inválida no canal {mensagem.get('channel')}: {e}")
                    continue
                if evento.origem == self.origem:
                    continue  # Eco do próprio evento
                await aplicar(evento)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Escuta de eventos remotos interrompida: {e}")
        finally:
            await pubsub.aclose()
