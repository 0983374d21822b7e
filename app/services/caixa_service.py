# app/services/caixa_service.py
"""
Sessões de caixa: abertura, fechamento com conferência e ajustes
(suprimento/sangria). Todo valor monetário é Decimal; nada passa por float.

    esperado  = saldo_abertura + vendas (dinheiro/PIX entregues) + entradas - saídas
    diferenca = saldo_informado - esperado
"""
import uuid
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.dinheiro import em_centavos
from app.core.logging import get_logger
from app.core.relogio import Relogio, agora_utc
from app.crud.crud_caixa import ajuste_caixa as crud_ajuste_caixa
from app.crud.crud_caixa import sessao_caixa as crud_sessao_caixa
from app.crud.crud_pedido import crud_pedido
from app.database import AsyncSessionLocal
from app.db.models.caixa import StatusSessaoCaixa, TipoAjusteCaixa
from app.db.models.pedido import METODOS_CAIXA, StatusPedido
from app.schemas.caixa import AjusteCaixaSchemas, ResumoSessaoCaixaSchemas, SessaoCaixaSchemas
from app.services.estado_service import EstadoService

logger = get_logger("caixa")

ZERO = Decimal("0")
MSG_CAIXA_JA_ABERTO = "Já existe um caixa aberto. Feche a sessão atual antes de abrir outra."
MSG_AJUSTES_INDISPONIVEIS = (
    "A funcionalidade de ajuste de caixa está indisponível: tabela 'ajustes_caixa' não encontrada no banco."
)


def como_decimal(valor: Any) -> Optional[Decimal]:
    """Converte para Decimal; None se não for um valor finito em centavos."""
    if valor is None or isinstance(valor, bool):
        return None
    try:
        numero = valor if isinstance(valor, Decimal) else Decimal(str(valor).strip())
    except (InvalidOperation, ValueError):
        return None
    return numero if em_centavos(numero) else None


def _somar_ajustes(ajustes, tipo: TipoAjusteCaixa) -> Decimal:
    return sum((a.valor for a in ajustes if a.tipo == tipo), ZERO)


class CaixaService:
    def __init__(
        self,
        estado: EstadoService,
        *,
        session_factory: async_sessionmaker = AsyncSessionLocal,
        relogio: Relogio = agora_utc,
    ):
        self.estado = estado
        self.session_factory = session_factory
        self.relogio = relogio

    async def listar_sessoes(self, *, skip: int = 0, limit: int = 100) -> List[SessaoCaixaSchemas]:
        async with self.session_factory() as db:
            return [SessaoCaixaSchemas.model_validate(s) for s in
                    await crud_sessao_caixa.get_multi(db, skip=skip, limit=limit)]

    async def listar_ajustes(self, sessao_id: Optional[uuid.UUID] = None) -> List[AjusteCaixaSchemas]:
        if not self.estado.ajustes_caixa_disponivel:
            return []
        async with self.session_factory() as db:
            return [AjusteCaixaSchemas.model_validate(a) for a in
                    await crud_ajuste_caixa.get_multi(db, sessao_id=sessao_id)]

    async def fetch_sessao_aberta(self) -> Optional[SessaoCaixaSchemas]:
        async with self.session_factory() as db:
            sessao = await crud_sessao_caixa.get_aberta(db)
            return SessaoCaixaSchemas.model_validate(sessao) if sessao else None

    async def abrir_caixa(
        self, saldo_abertura: Any, observacoes: Optional[str] = None
    ) -> Tuple[Optional[SessaoCaixaSchemas], Optional[str]]:
        saldo = como_decimal(saldo_abertura)
        if saldo is None or saldo < 0:
            return None, await self.estado.alertar(
                "Informe um saldo inicial válido (zero ou positivo, com até duas casas decimais).", "error"
            )
        if self.estado.sessao_caixa_ativa:
            return None, await self.estado.alertar(MSG_CAIXA_JA_ABERTO, "error")

        async with self.session_factory() as db:
            try:
                if await crud_sessao_caixa.get_aberta(db):
                    return None, await self.estado.alertar(MSG_CAIXA_JA_ABERTO, "error")
                db_sessao = await crud_sessao_caixa.create(db, dados={
                    "aberta_em": self.relogio(),
                    "saldo_abertura": saldo,
                    "observacoes_abertura": observacoes,
                    "status": StatusSessaoCaixa.ABERTA,
                })
                sessao_id = db_sessao.id
                await db.commit()
                snapshot = SessaoCaixaSchemas.model_validate(await crud_sessao_caixa.get(db, sessao_id))
            except IntegrityError:
                # Outra instância abriu o caixa entre a verificação e o INSERT
                await db.rollback()
                return None, await self.estado.alertar(MSG_CAIXA_JA_ABERTO, "error")
            except Exception as e:
                await db.rollback()
                logger.error(f"Erro ao abrir caixa: {e}")
                return None, await self.estado.alertar(f"Falha ao abrir caixa: {e}", "error")

        await self.estado.publicar_sessao(snapshot, "INSERT")
        return snapshot, await self.estado.alertar(f"Caixa aberto com saldo inicial de R$ {saldo:.2f}!", "success")

    async def _calcular_esperado(self, db: AsyncSession, sessao) -> Tuple[Decimal, Decimal]:
        """Devolve (vendas em dinheiro/PIX, esperado em caixa) lidos do banco."""
        vendas = await crud_pedido.soma_vendas_caixa(db, sessao_id=sessao.id)
        ajustes = []
        if self.estado.ajustes_caixa_disponivel:
            ajustes = await crud_ajuste_caixa.get_multi(db, sessao_id=sessao.id)
        esperado = (
            sessao.saldo_abertura
            + vendas
            + _somar_ajustes(ajustes, TipoAjusteCaixa.ENTRADA)
            - _somar_ajustes(ajustes, TipoAjusteCaixa.SAIDA)
        )
        return vendas, esperado

    async def fechar_caixa(
        self, sessao_id: uuid.UUID, saldo_informado: Any, observacoes: Optional[str] = None
    ) -> Tuple[Optional[SessaoCaixaSchemas], Optional[str]]:
        contado = como_decimal(saldo_informado)
        if contado is None or contado < 0:
            return None, await self.estado.alertar(
                "Informe um saldo de fechamento válido (zero ou positivo, com até duas casas decimais).", "error"
            )

        async with self.session_factory() as db:
            try:
                db_sessao = await crud_sessao_caixa.get(db, sessao_id)
                if not db_sessao or db_sessao.status != StatusSessaoCaixa.ABERTA:
                    return None, await self.estado.alertar("Sessão de caixa não encontrada ou já fechada.", "error")

                vendas, esperado = await self._calcular_esperado(db, db_sessao)
                diferenca = contado - esperado
                await crud_sessao_caixa.update(db, id=sessao_id, campos={
                    "fechada_em": self.relogio(),
                    "vendas_calculadas": vendas,
                    "esperado_em_caixa": esperado,
                    "saldo_fechamento_informado": contado,
                    "diferenca": diferenca,
                    "observacoes_fechamento": observacoes,
                    "status": StatusSessaoCaixa.FECHADA,
                })
                await db.commit()
                snapshot = SessaoCaixaSchemas.model_validate(await crud_sessao_caixa.get(db, sessao_id))
            except Exception as e:
                await db.rollback()
                logger.error(f"Erro ao fechar caixa {sessao_id}: {e}")
                return None, await self.estado.alertar(f"Falha ao fechar caixa: {e}", "error")

        logger.info(f"Caixa {sessao_id} fechado: esperado {esperado}, contado {contado}, diferença {diferenca}")
        await self.estado.publicar_sessao(snapshot)
        tipo = "success" if diferenca == 0 else "info"
        return snapshot, await self.estado.alertar(f"Caixa fechado. Diferença: R$ {diferenca:.2f}", tipo)

    async def add_ajuste_caixa(
        self, sessao_id: uuid.UUID, tipo: TipoAjusteCaixa, valor: Any, motivo: str
    ) -> Tuple[Optional[AjusteCaixaSchemas], Optional[str]]:
        if not self.estado.ajustes_caixa_disponivel:
            return None, await self.estado.alertar(MSG_AJUSTES_INDISPONIVEIS, "error")
        quantia = como_decimal(valor)
        if quantia is None:
            return None, await self.estado.alertar(
                "Informe um valor de ajuste válido, com até duas casas decimais.", "error"
            )
        if quantia <= 0:
            return None, await self.estado.alertar("O valor do ajuste deve ser maior que zero.", "error")
        motivo = (motivo or "").strip()
        if not motivo:
            return None, await self.estado.alertar("Informe o motivo do ajuste.", "error")

        async with self.session_factory() as db:
            try:
                db_sessao = await crud_sessao_caixa.get(db, sessao_id)
                if not db_sessao or db_sessao.status != StatusSessaoCaixa.ABERTA:
                    return None, await self.estado.alertar(
                        "Ajustes só podem ser registrados em uma sessão de caixa aberta.", "error"
                    )
                db_ajuste = await crud_ajuste_caixa.create(db, dados={
                    "sessao_id": sessao_id,
                    "tipo": tipo,
                    "valor": quantia,
                    "motivo": motivo,
                    "ajustado_em": self.relogio(),
                })
                ajuste_id = db_ajuste.id
                await db.commit()
                snapshot = AjusteCaixaSchemas.model_validate(await crud_ajuste_caixa.get(db, ajuste_id))
            except Exception as e:
                await db.rollback()
                logger.error(f"Erro ao registrar ajuste no caixa {sessao_id}: {e}")
                return None, await self.estado.alertar(f"Falha ao registrar ajuste: {e}", "error")

        await self.estado.publicar_ajuste(snapshot)
        descricao = "Entrada" if tipo == TipoAjusteCaixa.ENTRADA else "Saída"
        return snapshot, await self.estado.alertar(f"{descricao} de R$ {quantia:.2f} registrada no caixa.", "success")

    async def resumo_sessao(
        self, sessao_id: uuid.UUID
    ) -> Tuple[Optional[ResumoSessaoCaixaSchemas], Optional[str]]:
        async with self.session_factory() as db:
            db_sessao = await crud_sessao_caixa.get(db, sessao_id)
            if not db_sessao:
                return None, "Sessão de caixa não encontrada."
            pedidos = await crud_pedido.get_multi_by_sessao(db, sessao_id=sessao_id)
            ajustes = []
            if self.estado.ajustes_caixa_disponivel:
                ajustes = await crud_ajuste_caixa.get_multi(db, sessao_id=sessao_id)

        vendas_por_metodo: Dict[str, Decimal] = {}
        vendas_caixa = ZERO
        for pedido in pedidos:
            if not pedido.metodo_pagamento or pedido.status == StatusPedido.CANCELADO:
                continue
            chave = pedido.metodo_pagamento.value
            vendas_por_metodo[chave] = vendas_por_metodo.get(chave, ZERO) + pedido.valor_total
            if pedido.status == StatusPedido.ENTREGUE and pedido.metodo_pagamento in METODOS_CAIXA:
                vendas_caixa += pedido.valor_total

        entradas = _somar_ajustes(ajustes, TipoAjusteCaixa.ENTRADA)
        saidas = _somar_ajustes(ajustes, TipoAjusteCaixa.SAIDA)
        resumo = ResumoSessaoCaixaSchemas(
            sessao_id=db_sessao.id,
            status=db_sessao.status,
            saldo_abertura=db_sessao.saldo_abertura,
            vendas_por_metodo=vendas_por_metodo,
            vendas_total=sum(vendas_por_metodo.values(), ZERO),
            vendas_caixa=vendas_caixa,
            ajustes_entrada=entradas,
            ajustes_saida=saidas,
            ajustes_liquido=entradas - saidas,
            esperado_em_caixa=db_sessao.saldo_abertura + vendas_caixa + entradas - saidas,
        )
        return resumo, None
