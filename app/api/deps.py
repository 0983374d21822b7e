# app/api/deps.py
from fastapi import HTTPException, Request, status

from app.services.pdv_service import PDVService


def get_pdv(request: Request) -> PDVService:
    """Instância do PDV criada no startup da aplicação."""
    pdv = getattr(request.app.state, "pdv", None)
    if pdv is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="PDV não inicializado")
    return pdv
