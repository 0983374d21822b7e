from fastapi import APIRouter

from app.api.v1.endpoints import (
    caixa,
    eventos,
    mesas,
    pedidos,
    relatorios,
)

api_router_v1 = APIRouter()

api_router_v1.include_router(pedidos.router, prefix="/pedidos", tags=["Pedidos"])
api_router_v1.include_router(mesas.router, prefix="/mesas", tags=["Mesas"])
api_router_v1.include_router(caixa.router, prefix="/caixa", tags=["Caixa"])
api_router_v1.include_router(relatorios.router, prefix="/relatorios", tags=["Relatórios"])
api_router_v1.include_router(eventos.router, prefix="/eventos", tags=["Eventos"])


@api_router_v1.get("/", tags=["Root V1"])
async def read_root_v1():
    return {"message": "API V1 Operacional"}
