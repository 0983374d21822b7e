# app/crud/crud_caixa.py
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.caixa import AjusteCaixa, SessaoCaixa, StatusSessaoCaixa


class CRUDSessaoCaixa:
    async def get(self, db: AsyncSession, id: uuid.UUID) -> Optional[SessaoCaixa]:
        result = await db.execute(
            select(SessaoCaixa).where(SessaoCaixa.id == id).execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def get_aberta(self, db: AsyncSession) -> Optional[SessaoCaixa]:
        result = await db.execute(select(SessaoCaixa).where(SessaoCaixa.status == StatusSessaoCaixa.ABERTA))
        return result.scalars().first()

    async def get_multi(self, db: AsyncSession, *, skip: int = 0, limit: int = 100) -> List[SessaoCaixa]:
        result = await db.execute(
            select(SessaoCaixa).order_by(SessaoCaixa.aberta_em.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all())

    async def create(self, db: AsyncSession, *, dados: Dict[str, Any]) -> SessaoCaixa:
        db_obj = SessaoCaixa(**dados)
        db.add(db_obj)
        await db.flush()
        return db_obj

    async def update(self, db: AsyncSession, *, id: uuid.UUID, campos: Dict[str, Any]) -> bool:
        result = await db.execute(
            update(SessaoCaixa).where(SessaoCaixa.id == id).values(**campos)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0


class CRUDAjusteCaixa:
    async def get(self, db: AsyncSession, id: uuid.UUID) -> Optional[AjusteCaixa]:
        result = await db.execute(select(AjusteCaixa).where(AjusteCaixa.id == id))
        return result.scalars().first()

    async def get_multi(self, db: AsyncSession, *, sessao_id: Optional[uuid.UUID] = None) -> List[AjusteCaixa]:
        query = select(AjusteCaixa)
        if sessao_id:
            query = query.where(AjusteCaixa.sessao_id == sessao_id)
        result = await db.execute(query.order_by(AjusteCaixa.ajustado_em.desc()))
        return list(result.scalars().all())

    async def create(self, db: AsyncSession, *, dados: Dict[str, Any]) -> AjusteCaixa:
        db_obj = AjusteCaixa(**dados)
        db.add(db_obj)
        await db.flush()
        return db_obj


sessao_caixa = CRUDSessaoCaixa()
ajuste_caixa = CRUDAjusteCaixa()
