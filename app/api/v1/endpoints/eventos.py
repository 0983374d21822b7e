# app/api/v1/endpoints/eventos.py
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from app import schemas
from app.api.deps import get_pdv
from app.core.logging import logger
from app.services.pdv_service import PDVService

router = APIRouter()


@router.get("/estado", response_model=schemas.EstadoSchemas)
async def read_estado(pdv: PDVService = Depends(get_pdv)) -> schemas.EstadoSchemas:
    """Estado atual mantido em memória (o mesmo que alimenta o feed)."""
    estado = pdv.estado
    return schemas.EstadoSchemas(
        pedidos=estado.listar_pedidos(),
        mesas=estado.listar_mesas(),
        sessoes_caixa=estado.listar_sessoes(),
        ajustes_caixa=estado.listar_ajustes(),
        sessao_caixa_ativa=estado.sessao_caixa_ativa,
        alerta=estado.alerta,
        ajustes_caixa_disponivel=estado.ajustes_caixa_disponivel,
    )


@router.websocket("/ws")
async def stream_eventos(websocket: WebSocket):
    """
    Feed de alterações em tempo real: cada mensagem é um Evento em JSON
    (tabela, tipo, dados).
    """
    pdv = websocket.app.state.pdv
    await websocket.accept()
    fila = pdv.eventos.assinar()
    logger.info(f"Assinante conectado ao feed ({pdv.eventos.total_assinantes} ativos)")
    try:
        while True:
            evento = await fila.get()
            await websocket.send_text(evento.model_dump_json())
    except WebSocketDisconnect:
        logger.info("Assinante desconectado do feed")
    finally:
        pdv.eventos.cancelar_assinatura(fila)
