# app/crud/crud_mesa.py
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.mesa import Mesa, StatusMesa
from app.schemas.mesa import MesaCreateSchemas


class CRUDMesa:
    async def get(self, db: AsyncSession, id: uuid.UUID) -> Optional[Mesa]:
        result = await db.execute(select(Mesa).where(Mesa.id == id).execution_options(populate_existing=True))
        return result.scalars().first()

    async def get_by_nome(self, db: AsyncSession, *, nome: str) -> Optional[Mesa]:
        result = await db.execute(select(Mesa).where(Mesa.nome == nome))
        return result.scalars().first()

    async def get_multi(
        self, db: AsyncSession, *, skip: int = 0, limit: int = 100, status: Optional[StatusMesa] = None
    ) -> List[Mesa]:
        query = select(Mesa)
        if status:
            query = query.where(Mesa.status == status)
        result = await db.execute(query.order_by(Mesa.nome).offset(skip).limit(limit))
        return list(result.scalars().all())

    async def create(self, db: AsyncSession, *, obj_in: MesaCreateSchemas) -> Mesa:
        db_obj = Mesa(**obj_in.model_dump(), status=StatusMesa.DISPONIVEL)
        db.add(db_obj)
        await db.flush()
        return db_obj

    async def update(self, db: AsyncSession, *, id: uuid.UUID, campos: Dict[str, Any]) -> bool:
        result = await db.execute(
            update(Mesa).where(Mesa.id == id).values(**campos).execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def remove(self, db: AsyncSession, *, id: uuid.UUID) -> bool:
        result = await db.execute(delete(Mesa).where(Mesa.id == id).execution_options(synchronize_session=False))
        return result.rowcount > 0


mesa = CRUDMesa()
