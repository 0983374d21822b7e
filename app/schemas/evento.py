# app/schemas/evento.py
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime

from pydantic import BaseModel, Field

from app.core.relogio import agora_utc
from app.schemas.caixa import AjusteCaixaSchemas, SessaoCaixaSchemas
from app.schemas.mesa import MesaSchemas
from app.schemas.pedido import PedidoSchemas

TipoEvento = Literal["INSERT", "UPDATE", "DELETE", "ALERTA"]
TipoAlerta = Literal["success", "error", "info"]


class Alerta(BaseModel):
    mensagem: str
    tipo: TipoAlerta


class Evento(BaseModel):
    """Notificação de alteração de uma linha (ou alerta) publicada no feed."""
    tabela: str  # pedidos, mesas, sessoes_caixa, ajustes_caixa, alertas
    tipo: TipoEvento
    dados: Dict[str, Any]
    origem: Optional[str] = None  # Instância que publicou, para ignorar eco do Redis
    timestamp: datetime = Field(default_factory=agora_utc)


class EstadoSchemas(BaseModel):
    """Snapshot do espelho em memória do PDV."""
    pedidos: List[PedidoSchemas]
    mesas: List[MesaSchemas]
    sessoes_caixa: List[SessaoCaixaSchemas]
    ajustes_caixa: List[AjusteCaixaSchemas]
    sessao_caixa_ativa: Optional[SessaoCaixaSchemas] = None
    alerta: Optional[Alerta] = None
    ajustes_caixa_disponivel: bool
