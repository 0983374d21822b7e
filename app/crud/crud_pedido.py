# app/crud/crud_pedido.py
import uuid
from typing import Any, Dict, List, Optional
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.pedido import ItemPedido, METODOS_CAIXA, Pedido, STATUS_FINAIS, StatusPedido
from app.schemas.pedido import ItemPedidoCreateSchemas


def _item_para_colunas(item_in: ItemPedidoCreateSchemas) -> Dict[str, Any]:
    dados = item_in.model_dump(exclude={"primeiro_sabor", "segundo_sabor"})
    # Sabores vão para colunas JSON: Decimal/UUID precisam virar texto
    for campo in ("primeiro_sabor", "segundo_sabor"):
        sabor = getattr(item_in, campo)
        dados[campo] = sabor.model_dump(mode="json") if sabor is not None else None
    return dados


class CRUDItemPedido:
    async def get_multi_by_pedido(self, db: AsyncSession, *, pedido_id: uuid.UUID) -> List[ItemPedido]:
        result = await db.execute(
            select(ItemPedido).where(ItemPedido.pedido_id == pedido_id).order_by(ItemPedido.data_criacao)
        )
        return list(result.scalars().all())

    def create_multi(
        self, db: AsyncSession, *, pedido_id: uuid.UUID, itens_in: List[ItemPedidoCreateSchemas]
    ) -> List[ItemPedido]:
        itens = [ItemPedido(pedido_id=pedido_id, **_item_para_colunas(item_in)) for item_in in itens_in]
        db.add_all(itens)
        # O commit fica a cargo de quem chamou
        return itens


class CRUDPedido:
    async def get(self, db: AsyncSession, id: uuid.UUID) -> Optional[Pedido]:
        """Leitura completa (com itens), sempre do banco e não do identity map."""
        result = await db.execute(
            select(Pedido).where(Pedido.id == id).execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def get_multi(self, db: AsyncSession, *, skip: int = 0, limit: int = 100,
                        status: Optional[StatusPedido] = None) -> List[Pedido]:
        query = select(Pedido)
        if status:
            query = query.where(Pedido.status == status)
        result = await db.execute(query.order_by(Pedido.hora_pedido.desc()).offset(skip).limit(limit))
        return list(result.scalars().all())

    async def get_multi_auto_progresso(self, db: AsyncSession) -> List[Pedido]:
        """Pedidos em andamento com progresso automático e timer definido."""
        result = await db.execute(
            select(Pedido)
            .where(
                Pedido.status.notin_(STATUS_FINAIS),
                Pedido.auto_progresso.is_(True),
                Pedido.proxima_transicao_automatica.isnot(None),
            )
            .order_by(Pedido.hora_pedido)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_multi_by_sessao(self, db: AsyncSession, *, sessao_id: uuid.UUID) -> List[Pedido]:
        result = await db.execute(select(Pedido).where(Pedido.sessao_caixa_id == sessao_id))
        return list(result.scalars().all())

    async def get_multi_entregues(self, db: AsyncSession) -> List[Pedido]:
        result = await db.execute(select(Pedido).where(Pedido.status == StatusPedido.ENTREGUE))
        return list(result.scalars().all())

    async def soma_vendas_caixa(self, db: AsyncSession, *, sessao_id: uuid.UUID) -> Decimal:
        """Total dos pedidos entregues em dinheiro/PIX vinculados à sessão."""
        result = await db.execute(
            select(Pedido.valor_total).where(
                Pedido.sessao_caixa_id == sessao_id,
                Pedido.status == StatusPedido.ENTREGUE,
                Pedido.metodo_pagamento.in_(METODOS_CAIXA),
            )
        )
        # Soma em Decimal no Python: SQLite somaria em ponto flutuante
        return sum((valor for valor in result.scalars().all()), Decimal("0"))

    async def create(
        self, db: AsyncSession, *, dados: Dict[str, Any], itens_in: List[ItemPedidoCreateSchemas]
    ) -> Pedido:
        db_pedido = Pedido(**dados)
        db.add(db_pedido)
        await db.flush()  # Para obter o ID do pedido para os itens
        crud_item_pedido.create_multi(db, pedido_id=db_pedido.id, itens_in=itens_in)
        await db.flush()
        return db_pedido

    async def update(self, db: AsyncSession, *, id: uuid.UUID, campos: Dict[str, Any]) -> bool:
        """Atualização parcial (patch) em um único comando. Retorna False se o pedido não existe."""
        result = await db.execute(
            update(Pedido).where(Pedido.id == id).values(**campos).execution_options(synchronize_session=False)
        )
        return result.rowcount > 0


crud_item_pedido = CRUDItemPedido()
crud_pedido = CRUDPedido()
