# app/services/estado_service.py
"""
Espelho em memória do estado do PDV.

Guarda o último snapshot conhecido de pedidos, mesas, sessões e ajustes de
caixa, o último alerta e a flag de disponibilidade dos ajustes. É atualizado
a cada escrita bem-sucedida (sempre com a linha relida do banco) e pelos
eventos recebidos de outras instâncias.
"""
import uuid
from typing import Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.crud import crud_caixa, crud_mesa, crud_pedido
from app.db.models.caixa import StatusSessaoCaixa
from app.schemas.caixa import AjusteCaixaSchemas, SessaoCaixaSchemas
from app.schemas.evento import Alerta, Evento
from app.schemas.mesa import MesaSchemas
from app.schemas.pedido import PedidoSchemas
from app.services.eventos_service import EventosService

logger = get_logger("estado")

TABELA_AJUSTES = "ajustes_caixa"

_MODELOS = {
    "pedidos": PedidoSchemas,
    "mesas": MesaSchemas,
    "sessoes_caixa": SessaoCaixaSchemas,
    "ajustes_caixa": AjusteCaixaSchemas,
}


async def detectar_ajustes_caixa(db: AsyncSession) -> bool:
    """Bancos antigos podem não ter a tabela de ajustes ainda."""
    return await db.run_sync(lambda sessao: inspect(sessao.connection()).has_table(TABELA_AJUSTES))


class EstadoService:
    def __init__(self, eventos: EventosService):
        self.eventos = eventos
        self.pedidos: Dict[uuid.UUID, PedidoSchemas] = {}
        self.mesas: Dict[uuid.UUID, MesaSchemas] = {}
        self.sessoes_caixa: Dict[uuid.UUID, SessaoCaixaSchemas] = {}
        self.ajustes_caixa: Dict[uuid.UUID, AjusteCaixaSchemas] = {}
        self.alerta: Optional[Alerta] = None
        self.ajustes_caixa_disponivel = True
        self.carregado = False

    def _colecao(self, tabela: str) -> Dict[uuid.UUID, object]:
        return {
            "pedidos": self.pedidos,
            "mesas": self.mesas,
            "sessoes_caixa": self.sessoes_caixa,
            "ajustes_caixa": self.ajustes_caixa,
        }[tabela]

    # --- Consultas ---

    @property
    def sessao_caixa_ativa(self) -> Optional[SessaoCaixaSchemas]:
        for sessao in self.sessoes_caixa.values():
            if sessao.status == StatusSessaoCaixa.ABERTA:
                return sessao
        return None

    def listar_pedidos(self) -> List[PedidoSchemas]:
        return sorted(self.pedidos.values(), key=lambda p: p.hora_pedido, reverse=True)

    def listar_mesas(self) -> List[MesaSchemas]:
        return sorted(self.mesas.values(), key=lambda m: m.nome)

    def listar_sessoes(self) -> List[SessaoCaixaSchemas]:
        return sorted(self.sessoes_caixa.values(), key=lambda s: s.aberta_em, reverse=True)

    def listar_ajustes(self, sessao_id: Optional[uuid.UUID] = None) -> List[AjusteCaixaSchemas]:
        ajustes = [a for a in self.ajustes_caixa.values() if sessao_id is None or a.sessao_id == sessao_id]
        return sorted(ajustes, key=lambda a: a.ajustado_em, reverse=True)

    # --- Escrita (sempre seguida de publicação no feed) ---

    async def publicar_pedido(self, pedido: PedidoSchemas, tipo: str = "UPDATE") -> None:
        self.pedidos[pedido.id] = pedido
        await self.eventos.publicar("pedidos", tipo, pedido)

    async def publicar_mesa(self, mesa: MesaSchemas, tipo: str = "UPDATE") -> None:
        self.mesas[mesa.id] = mesa
        await self.eventos.publicar("mesas", tipo, mesa)

    async def remover_mesa(self, mesa: MesaSchemas) -> None:
        self.mesas.pop(mesa.id, None)
        await self.eventos.publicar("mesas", "DELETE", mesa)

    async def publicar_sessao(self, sessao: SessaoCaixaSchemas, tipo: str = "UPDATE") -> None:
        self.sessoes_caixa[sessao.id] = sessao
        await self.eventos.publicar("sessoes_caixa", tipo, sessao)

    async def publicar_ajuste(self, ajuste: AjusteCaixaSchemas, tipo: str = "INSERT") -> None:
        self.ajustes_caixa[ajuste.id] = ajuste
        await self.eventos.publicar("ajustes_caixa", tipo, ajuste)

    async def alertar(self, mensagem: str, tipo: str = "info") -> str:
        """Registra o alerta no estado, publica no feed e devolve a mensagem."""
        if tipo == "error":
            logger.error(mensagem)
        else:
            logger.info(mensagem)
        self.alerta = Alerta(mensagem=mensagem, tipo=tipo)
        await self.eventos.publicar("alertas", "ALERTA", self.alerta)
        return mensagem

    # --- Carga inicial e sincronização ---

    async def carregar(self, db: AsyncSession, *, limite_pedidos: int = 100) -> None:
        """
        Carrega o estado inicial: pedidos mais recentes, mesas, sessões e
        ajustes. Falhas são reportadas como alerta e a carga continua com o
        que foi possível ler.
        """
        try:
            self.ajustes_caixa_disponivel = await detectar_ajustes_caixa(db)
            if not self.ajustes_caixa_disponivel:
                logger.warning("Tabela 'ajustes_caixa' não encontrada; ajustes de caixa desabilitados.")

            pedidos = await crud_pedido.crud_pedido.get_multi(db, limit=limite_pedidos)
            self.pedidos = {p.id: PedidoSchemas.model_validate(p) for p in pedidos}

            mesas = await crud_mesa.mesa.get_multi(db, limit=1000)
            self.mesas = {m.id: MesaSchemas.model_validate(m) for m in mesas}

            sessoes = await crud_caixa.sessao_caixa.get_multi(db, limit=1000)
            self.sessoes_caixa = {s.id: SessaoCaixaSchemas.model_validate(s) for s in sessoes}

            if self.ajustes_caixa_disponivel:
                ajustes = await crud_caixa.ajuste_caixa.get_multi(db)
                self.ajustes_caixa = {a.id: AjusteCaixaSchemas.model_validate(a) for a in ajustes}
            self.carregado = True
            logger.info(
                f"Estado carregado: {len(self.pedidos)} pedidos, {len(self.mesas)} mesas, "
                f"{len(self.sessoes_caixa)} sessões de caixa"
            )
        except Exception as e:
            logger.exception("Erro na carga inicial do estado")
            await self.alertar(f"Falha ao carregar dados iniciais: {e}", "error")

    async def aplicar_evento(self, evento: Evento) -> None:
        """Aplica no espelho um evento vindo de outra instância e repassa aos assinantes locais."""
        if evento.tabela in _MODELOS:
            colecao = self._colecao(evento.tabela)
            try:
                registro = _MODELOS[evento.tabela].model_validate(evento.dados)
            except ValidationError as e:
                logger.warning(f"Evento remoto inválido para {evento.tabela}: {e}")
                return
            if evento.tipo == "DELETE":
                colecao.pop(registro.id, None)
            else:
                colecao[registro.id] = registro
        self.eventos.repassar_local(evento)
