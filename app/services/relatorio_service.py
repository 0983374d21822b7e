# app/services/relatorio_service.py
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.relogio import Relogio, agora_utc, como_utc
from app.crud.crud_pedido import crud_pedido
from app.database import AsyncSessionLocal
from app.schemas.relatorio import ResumoFinanceiro
from app.services.caixa_service import CaixaService

CENTAVO = Decimal("0.01")


class RelatorioService:
    def __init__(
        self,
        caixa: CaixaService,
        *,
        session_factory: async_sessionmaker = AsyncSessionLocal,
        relogio: Relogio = agora_utc,
    ):
        self.caixa = caixa
        self.session_factory = session_factory
        self.relogio = relogio

    async def resumo_financeiro(self) -> ResumoFinanceiro:
        """Vendas entregues do dia, do mês e do ano (datas em UTC) e o resumo do caixa aberto."""
        hoje = self.relogio().date()
        async with self.session_factory() as db:
            entregues = await crud_pedido.get_multi_entregues(db)

        vendas_hoje = vendas_mes = vendas_ano = Decimal("0")
        total_geral = Decimal("0")
        for pedido in entregues:
            data = como_utc(pedido.hora_pedido).date()
            total_geral += pedido.valor_total
            if data.year != hoje.year:
                continue
            vendas_ano += pedido.valor_total
            if data.month == hoje.month:
                vendas_mes += pedido.valor_total
                if data == hoje:
                    vendas_hoje += pedido.valor_total

        ticket_medio = Decimal("0")
        if entregues:
            ticket_medio = (total_geral / len(entregues)).quantize(CENTAVO, rounding=ROUND_HALF_UP)

        sessao_ativa = None
        sessao = await self.caixa.fetch_sessao_aberta()
        if sessao:
            sessao_ativa, _ = await self.caixa.resumo_sessao(sessao.id)

        return ResumoFinanceiro(
            data_referencia=hoje,
            vendas_hoje=vendas_hoje,
            vendas_mes=vendas_mes,
            vendas_ano=vendas_ano,
            pedidos_entregues=len(entregues),
            ticket_medio=ticket_medio,
            sessao_ativa=sessao_ativa,
        )
