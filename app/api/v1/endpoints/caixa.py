# app/api/v1/endpoints/caixa.py
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app import schemas
from app.api.deps import get_pdv
from app.services.pdv_service import PDVService

router = APIRouter()


@router.post("/sessoes", response_model=schemas.SessaoCaixaSchemas, status_code=status.HTTP_201_CREATED)
async def abrir_caixa(
    abertura_in: schemas.AbrirCaixaSchemas,
    pdv: PDVService = Depends(get_pdv),
) -> schemas.SessaoCaixaSchemas:
    """Abre uma sessão de caixa. Só pode haver uma aberta por vez."""
    sessao, message = await pdv.caixa.abrir_caixa(abertura_in.saldo_abertura, abertura_in.observacoes)
    if not sessao:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
    return sessao


@router.get("/sessoes", response_model=List[schemas.SessaoCaixaSchemas])
async def read_sessoes(
    skip: int = 0,
    limit: int = 100,
    pdv: PDVService = Depends(get_pdv),
) -> List[schemas.SessaoCaixaSchemas]:
    return await pdv.caixa.listar_sessoes(skip=skip, limit=limit)


@router.get("/sessoes/ativa", response_model=Optional[schemas.SessaoCaixaSchemas])
async def read_sessao_ativa(pdv: PDVService = Depends(get_pdv)) -> Optional[schemas.SessaoCaixaSchemas]:
    return await pdv.caixa.fetch_sessao_aberta()


@router.post("/sessoes/{sessao_id}/fechar", response_model=schemas.SessaoCaixaSchemas)
async def fechar_caixa(
    sessao_id: uuid.UUID,
    fechamento_in: schemas.FecharCaixaSchemas,
    pdv: PDVService = Depends(get_pdv),
) -> schemas.SessaoCaixaSchemas:
    """
    Fecha a sessão conferindo o valor contado contra o esperado
    (abertura + vendas em dinheiro/PIX + entradas - saídas).
    """
    sessao, message = await pdv.caixa.fechar_caixa(
        sessao_id, fechamento_in.saldo_fechamento_informado, fechamento_in.observacoes
    )
    if not sessao:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
    return sessao


@router.get("/sessoes/{sessao_id}/resumo", response_model=schemas.ResumoSessaoCaixaSchemas)
async def read_resumo_sessao(
    sessao_id: uuid.UUID,
    pdv: PDVService = Depends(get_pdv),
) -> schemas.ResumoSessaoCaixaSchemas:
    resumo, message = await pdv.caixa.resumo_sessao(sessao_id)
    if not resumo:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)
    return resumo


@router.post(
    "/sessoes/{sessao_id}/ajustes",
    response_model=schemas.AjusteCaixaSchemas,
    status_code=status.HTTP_201_CREATED,
)
async def add_ajuste_caixa(
    sessao_id: uuid.UUID,
    ajuste_in: schemas.AjusteCaixaCreateSchemas,
    pdv: PDVService = Depends(get_pdv),
) -> schemas.AjusteCaixaSchemas:
    """Registra suprimento (entrada) ou sangria (saída) na sessão aberta."""
    ajuste, message = await pdv.caixa.add_ajuste_caixa(sessao_id, ajuste_in.tipo, ajuste_in.valor, ajuste_in.motivo)
    if not ajuste:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
    return ajuste


@router.get("/sessoes/{sessao_id}/ajustes", response_model=List[schemas.AjusteCaixaSchemas])
async def read_ajustes(
    sessao_id: uuid.UUID,
    pdv: PDVService = Depends(get_pdv),
) -> List[schemas.AjusteCaixaSchemas]:
    return await pdv.caixa.listar_ajustes(sessao_id)
