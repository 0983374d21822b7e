# app/api/v1/endpoints/mesas.py
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app import schemas
from app.api.deps import get_pdv
from app.db.models.mesa import StatusMesa
from app.services.pdv_service import PDVService

router = APIRouter()


@router.post("/", response_model=schemas.MesaSchemas, status_code=status.HTTP_201_CREATED)
async def create_mesa(
    mesa_in: schemas.MesaCreateSchemas,
    pdv: PDVService = Depends(get_pdv),
) -> schemas.MesaSchemas:
    """
    Cria uma nova mesa (sempre disponível).
    """
    mesa, message = await pdv.mesas.create_mesa(mesa_in)
    if not mesa:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
    return mesa


@router.get("/", response_model=List[schemas.MesaSchemas])
async def read_mesas(
    status_mesa: Optional[StatusMesa] = None,
    pdv: PDVService = Depends(get_pdv),
) -> List[schemas.MesaSchemas]:
    return await pdv.mesas.listar_mesas(status=status_mesa)


@router.get("/{mesa_id}", response_model=schemas.MesaSchemas)
async def read_mesa_by_id(
    mesa_id: uuid.UUID,
    pdv: PDVService = Depends(get_pdv),
) -> schemas.MesaSchemas:
    mesa = await pdv.mesas.fetch_mesa(mesa_id)
    if not mesa:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Mesa não encontrada")
    return mesa


@router.put("/{mesa_id}", response_model=schemas.MesaSchemas)
async def update_mesa(
    mesa_id: uuid.UUID,
    mesa_in: schemas.MesaUpdateSchemas,
    pdv: PDVService = Depends(get_pdv),
) -> schemas.MesaSchemas:
    """
    Atualiza uma mesa. Não permite marcar para limpeza enquanto o pedido
    atual estiver em andamento.
    """
    if not await pdv.mesas.fetch_mesa(mesa_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Mesa não encontrada")
    mesa, message = await pdv.mesas.update_mesa(mesa_id, mesa_in)
    if not mesa:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
    return mesa


@router.delete("/{mesa_id}", response_model=schemas.MesaSchemas)
async def delete_mesa(
    mesa_id: uuid.UUID,
    pdv: PDVService = Depends(get_pdv),
) -> schemas.MesaSchemas:
    if not await pdv.mesas.fetch_mesa(mesa_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Mesa não encontrada")
    mesa, message = await pdv.mesas.remove_mesa(mesa_id)
    if not mesa:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
    return mesa
