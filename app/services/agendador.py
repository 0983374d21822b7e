# app/services/agendador.py
import asyncio
from typing import Optional

from app.core.logging import get_logger
from app.services.pedido_service import PedidoService

logger = get_logger("agendador")


class AgendadorTransicoes:
    """Executa a verificação de transições automáticas em intervalo fixo."""

    def __init__(self, pedidos: PedidoService, intervalo: float):
        self.pedidos = pedidos
        self.intervalo = intervalo
        self._tarefa: Optional[asyncio.Task] = None

    @property
    def em_execucao(self) -> bool:
        return self._tarefa is not None and not self._tarefa.done()

    def iniciar(self) -> None:
        if self.em_execucao:
            return
        self._tarefa = asyncio.create_task(self._executar(), name="agendador-transicoes")
        logger.info(f"Agendador de transições iniciado (intervalo de {self.intervalo}s)")

    async def _executar(self) -> None:
        while True:
            await asyncio.sleep(self.intervalo)
            try:
                alterados = await self.pedidos.check_pedido_transitions()
                if alterados:
                    logger.debug(f"{alterados} pedido(s) alterado(s) pela progressão automática")
            except Exception:
                # O loop não pode morrer por causa de uma rodada com erro
                logger.exception("Erro na verificação periódica de transições")

    async def parar(self) -> None:
        if self._tarefa is None:
            return
        self._tarefa.cancel()
        try:
            await self._tarefa
        except asyncio.CancelledError:
            pass
        self._tarefa = None
        logger.info("Agendador de transições parado")
