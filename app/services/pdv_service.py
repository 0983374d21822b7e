# app/services/pdv_service.py
"""
Fachada do PDV: monta os serviços sobre um mesmo espelho de estado e feed de
eventos e controla o ciclo de vida (carga inicial, agendador, escuta do Redis).
"""
import asyncio
from typing import Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.config import settings
from app.core.logging import get_logger
from app.core.relogio import Relogio, agora_utc
from app.database import AsyncSessionLocal
from app.db.base_class import Base
from app.services.agendador import AgendadorTransicoes
from app.services.caixa_service import CaixaService
from app.services.estado_service import EstadoService
from app.services.eventos_service import EventosService
from app.services.mesa_service import MesaService
from app.services.pedido_service import PedidoService
from app.services.progresso import ConfigProgressao
from app.services.redis_service import RedisClient
from app.services.relatorio_service import RelatorioService

logger = get_logger("pdv")


class PDVService:
    def __init__(
        self,
        *,
        session_factory: async_sessionmaker = AsyncSessionLocal,
        config: Optional[ConfigProgressao] = None,
        relogio: Relogio = agora_utc,
        redis: Optional[RedisClient] = None,
        intervalo_agendador: float = settings.INTERVALO_AUTO_PROGRESSO_SEGUNDOS,
        agendador_habilitado: bool = settings.AGENDADOR_HABILITADO,
        limite_pedidos_carga: int = settings.LIMITE_PEDIDOS_CARGA_INICIAL,
    ):
        self.session_factory = session_factory
        self.agendador_habilitado = agendador_habilitado
        self.limite_pedidos_carga = limite_pedidos_carga

        self.eventos = EventosService(redis=redis)
        self.estado = EstadoService(self.eventos)
        self.pedidos = PedidoService(self.estado, session_factory=session_factory, config=config, relogio=relogio)
        self.mesas = MesaService(self.estado, session_factory=session_factory, relogio=relogio)
        self.caixa = CaixaService(self.estado, session_factory=session_factory, relogio=relogio)
        self.relatorios = RelatorioService(self.caixa, session_factory=session_factory, relogio=relogio)
        self.agendador = AgendadorTransicoes(self.pedidos, intervalo_agendador)
        self._escuta_remota: Optional[asyncio.Task] = None

    async def criar_tabelas(self) -> None:
        """Cria as tabelas que faltam (apenas desenvolvimento/testes; produção usa Alembic)."""
        async with self.session_factory() as db:
            await db.run_sync(lambda sessao: Base.metadata.create_all(bind=sessao.connection()))
            await db.commit()

    async def iniciar(self) -> None:
        async with self.session_factory() as db:
            await self.estado.carregar(db, limite_pedidos=self.limite_pedidos_carga)
        if self.agendador_habilitado:
            self.agendador.iniciar()
        if self.eventos.redis:
            await self.eventos.redis.connect()
            self._escuta_remota = asyncio.create_task(
                self.eventos.escutar_remoto(self.estado.aplicar_evento), name="escuta-redis"
            )
        logger.info("PDV iniciado")

    async def encerrar(self) -> None:
        await self.agendador.parar()
        if self._escuta_remota:
            self._escuta_remota.cancel()
            try:
                await self._escuta_remota
            except asyncio.CancelledError:
                pass
            self._escuta_remota = None
        if self.eventos.redis:
            await self.eventos.redis.disconnect()
        logger.info("PDV encerrado")
