# app/api/v1/endpoints/relatorios.py
from fastapi import APIRouter, Depends, HTTPException, status

from app import schemas
from app.api.deps import get_pdv
from app.core.logging import logger
from app.services.pdv_service import PDVService

router = APIRouter()


@router.get("/financeiro", response_model=schemas.ResumoFinanceiro)
async def read_resumo_financeiro(pdv: PDVService = Depends(get_pdv)) -> schemas.ResumoFinanceiro:
    """
    Vendas entregues do dia, mês e ano, ticket médio e resumo do caixa aberto.
    """
    try:
        return await pdv.relatorios.resumo_financeiro()
    except Exception as e:
        logger.error(f"Erro ao gerar resumo financeiro: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Erro interno ao gerar resumo financeiro"
        )
