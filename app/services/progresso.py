# app/services/progresso.py
"""
Regras de progressão automática dos pedidos.

Funções puras, sem acesso a banco: recebem o status, a configuração de
tempos e o instante atual e devolvem os campos a gravar. Todos os caminhos
que mudam o status (manual, automático, ativação do auto-progresso, inclusão
de itens, criação) passam por ``calcular_progresso``.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from app.core.config import Settings, settings
from app.db.models.pedido import STATUS_FINAIS, StatusPedido, TipoPedido

SEQUENCIA_PADRAO: Dict[StatusPedido, StatusPedido] = {
    StatusPedido.PENDENTE: StatusPedido.EM_PREPARO,
    StatusPedido.EM_PREPARO: StatusPedido.PRONTO_PARA_RETIRADA,
    StatusPedido.PRONTO_PARA_RETIRADA: StatusPedido.SAIU_PARA_ENTREGA,
    StatusPedido.SAIU_PARA_ENTREGA: StatusPedido.ENTREGUE,
}


@dataclass(frozen=True)
class ConfigProgressao:
    duracoes: Dict[StatusPedido, timedelta]
    sequencia: Dict[StatusPedido, StatusPedido] = field(default_factory=lambda: dict(SEQUENCIA_PADRAO))

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "ConfigProgressao":
        return cls(
            duracoes={
                StatusPedido.PENDENTE: timedelta(seconds=config.DURACAO_PENDENTE_SEGUNDOS),
                StatusPedido.EM_PREPARO: timedelta(seconds=config.DURACAO_EM_PREPARO_SEGUNDOS),
                StatusPedido.PRONTO_PARA_RETIRADA: timedelta(seconds=config.DURACAO_PRONTO_SEGUNDOS),
                StatusPedido.SAIU_PARA_ENTREGA: timedelta(seconds=config.DURACAO_SAIU_PARA_ENTREGA_SEGUNDOS),
            }
        )

    def duracao(self, status: StatusPedido) -> timedelta:
        return self.duracoes.get(status, timedelta(0))

    def proximo(self, status: StatusPedido) -> Optional[StatusPedido]:
        return self.sequencia.get(status)


@dataclass(frozen=True)
class ProgressoPedido:
    auto_progresso: bool
    proxima_transicao_automatica: Optional[datetime]
    progresso_atual: int

    def como_campos(self) -> Dict[str, Any]:
        return {
            "auto_progresso": self.auto_progresso,
            "proxima_transicao_automatica": self.proxima_transicao_automatica,
            "progresso_atual": self.progresso_atual,
        }


# Status final, retenção da mesa ou status sem espera
PROGRESSO_PARADO = ProgressoPedido(auto_progresso=False, proxima_transicao_automatica=None, progresso_atual=100)


def is_retencao_mesa(tipo_pedido: TipoPedido, status: StatusPedido) -> bool:
    """Pedido de mesa pronto fica parado até o fechamento manual da conta."""
    return tipo_pedido == TipoPedido.MESA and status == StatusPedido.PRONTO_PARA_RETIRADA


def calcular_progresso(
    status: StatusPedido,
    config: ConfigProgressao,
    agora: datetime,
    retido: bool = False,
) -> ProgressoPedido:
    if retido or status in STATUS_FINAIS:
        return PROGRESSO_PARADO
    duracao = config.duracao(status)
    if duracao > timedelta(0):
        return ProgressoPedido(auto_progresso=True, proxima_transicao_automatica=agora + duracao, progresso_atual=0)
    return PROGRESSO_PARADO


def _proximo_status(status: StatusPedido, tipo_pedido: TipoPedido, config: ConfigProgressao) -> Optional[StatusPedido]:
    if is_retencao_mesa(tipo_pedido, status):
        return None
    seguinte = config.proximo(status)
    # Só delivery sai para entrega; balcão vai direto para entregue
    if seguinte == StatusPedido.SAIU_PARA_ENTREGA and tipo_pedido != TipoPedido.DELIVERY:
        return StatusPedido.ENTREGUE
    return seguinte


def resolver_destino_automatico(
    status: StatusPedido, tipo_pedido: TipoPedido, config: ConfigProgressao
) -> Optional[StatusPedido]:
    """
    Status para o qual um pedido vencido deve avançar, ou None se não há
    próximo status (fim da sequência ou pedido de mesa retido).

    Status intermediários com duração zero são atravessados na mesma
    transição: "sem espera" significa avançar imediatamente.
    """
    destino = _proximo_status(status, tipo_pedido, config)
    visitados = {status}
    while (
        destino is not None
        and destino not in STATUS_FINAIS
        and destino not in visitados
        and config.duracao(destino) <= timedelta(0)
        and not is_retencao_mesa(tipo_pedido, destino)
    ):
        seguinte = _proximo_status(destino, tipo_pedido, config)
        if seguinte is None:
            break
        visitados.add(destino)
        destino = seguinte
    return destino


def progresso_ao_vivo(
    status: StatusPedido, proxima_transicao: datetime, config: ConfigProgressao, agora: datetime
) -> int:
    duracao = config.duracao(status)
    if duracao <= timedelta(0):
        return 100 if proxima_transicao <= agora else 0
    decorrido = duracao - (proxima_transicao - agora)
    percentual = decorrido / duracao * 100
    return int(round(min(100.0, max(0.0, percentual))))


def deve_persistir_progresso(novo: int, persistido: int, limiar: int) -> bool:
    """Limita a quantidade de gravações: só grava saltos maiores que o limiar e as bordas 0/100."""
    if abs(novo - persistido) > limiar:
        return True
    if novo == 100 and persistido != 100:
        return True
    return novo == 0 and persistido != 0
