import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app import schemas
from app.api.deps import get_pdv
from app.core.logging import logger
from app.db.models.pedido import StatusPedido
from app.services.pdv_service import PDVService

router = APIRouter()


async def _pedido_existente(pdv: PDVService, pedido_id: uuid.UUID) -> schemas.PedidoSchemas:
    pedido = await pdv.pedidos.fetch_pedido_com_itens(pedido_id)
    if not pedido:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pedido não encontrado")
    return pedido


@router.post("/", response_model=schemas.PedidoSchemas, status_code=status.HTTP_201_CREATED)
async def create_pedido_manual(
    pedido_in: schemas.PedidoManualCreateSchemas,
    pdv: PDVService = Depends(get_pdv),
) -> schemas.PedidoSchemas:
    """
    Lança um pedido pela equipe (balcão, mesa ou delivery).
    Pedido de mesa ocupa a mesa se ela estiver disponível.
    """
    try:
        pedido, message = await pdv.pedidos.create_pedido_manual(pedido_in)
        if not pedido:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
        return pedido
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao criar pedido: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Erro interno ao criar pedido"
        )


@router.post("/online", response_model=schemas.PedidoSchemas, status_code=status.HTTP_201_CREATED)
async def create_pedido_online(
    pedido_in: schemas.PedidoOnlineCreateSchemas,
    pdv: PDVService = Depends(get_pdv),
) -> schemas.PedidoSchemas:
    """Pedido do cardápio online (sempre delivery)."""
    pedido, message = await pdv.pedidos.create_pedido_online(pedido_in)
    if not pedido:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
    return pedido


@router.get("/", response_model=List[schemas.PedidoSchemas])
async def list_pedidos(
    skip: int = 0,
    limit: int = 100,
    status_pedido: Optional[StatusPedido] = None,
    pdv: PDVService = Depends(get_pdv),
) -> List[schemas.PedidoSchemas]:
    return await pdv.pedidos.listar_pedidos(skip=skip, limit=limit, status=status_pedido)


@router.get("/{pedido_id}", response_model=schemas.PedidoSchemas)
async def read_pedido(
    pedido_id: uuid.UUID,
    pdv: PDVService = Depends(get_pdv),
) -> schemas.PedidoSchemas:
    return await _pedido_existente(pdv, pedido_id)


@router.patch("/{pedido_id}/status", response_model=schemas.PedidoSchemas)
async def update_pedido_status(
    pedido_id: uuid.UUID,
    status_in: schemas.PedidoStatusUpdateSchemas,
    pdv: PDVService = Depends(get_pdv),
) -> schemas.PedidoSchemas:
    """
    Muda o status do pedido. Pedido de mesa não pode ser entregue por aqui:
    use o fechamento de conta.
    """
    try:
        await _pedido_existente(pdv, pedido_id)
        pedido, message = await pdv.pedidos.update_pedido_status(pedido_id, status_in.status, manual=True)
        if not pedido:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
        return pedido
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao atualizar status do pedido {pedido_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Erro interno ao atualizar status do pedido"
        )


@router.post("/{pedido_id}/auto-progresso", response_model=schemas.PedidoSchemas)
async def toggle_auto_progresso(
    pedido_id: uuid.UUID,
    pdv: PDVService = Depends(get_pdv),
) -> schemas.PedidoSchemas:
    """Liga/desliga o avanço automático de status do pedido."""
    await _pedido_existente(pdv, pedido_id)
    pedido, message = await pdv.pedidos.toggle_auto_progress(pedido_id)
    if not pedido:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
    return pedido


@router.post("/{pedido_id}/itens", response_model=schemas.PedidoSchemas)
async def add_itens_pedido(
    pedido_id: uuid.UUID,
    itens_in: schemas.AdicionarItensSchemas,
    pdv: PDVService = Depends(get_pdv),
) -> schemas.PedidoSchemas:
    await _pedido_existente(pdv, pedido_id)
    pedido, message = await pdv.pedidos.add_itens_pedido(pedido_id, itens_in.itens)
    if not pedido:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
    return pedido


@router.post("/{pedido_id}/fechar-conta", response_model=schemas.PedidoSchemas)
async def fechar_conta(
    pedido_id: uuid.UUID,
    pagamento_in: schemas.DetalhesPagamentoSchemas,
    pdv: PDVService = Depends(get_pdv),
) -> schemas.PedidoSchemas:
    """
    Fecha a conta do pedido: registra o pagamento, marca como entregue e
    libera a mesa para limpeza.
    """
    try:
        await _pedido_existente(pdv, pedido_id)
        pedido, message = await pdv.mesas.fechar_conta_mesa(pedido_id, pagamento_in)
        if not pedido:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
        return pedido
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erro ao fechar conta do pedido {pedido_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Erro interno ao fechar conta"
        )


@router.post("/verificar-transicoes")
async def verificar_transicoes(pdv: PDVService = Depends(get_pdv)):
    """Executa imediatamente uma rodada da progressão automática."""
    alterados = await pdv.pedidos.check_pedido_transitions()
    return {"pedidos_alterados": alterados}
