from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.logging import logger
from app.api.v1.router import api_router_v1
from app.services.pdv_service import PDVService
from app.services.redis_service import RedisClient


def create_app(pdv: Optional[PDVService] = None) -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="API do PDV da pizzaria: pedidos com progressão automática, mesas e caixa",
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        version=settings.PROJECT_VERSION,
        contact={"name": "Suporte", "email": settings.SUPPORT_EMAIL},
    )

    # Configuração de CORS
    if settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    if pdv is None:
        pdv = PDVService(redis=RedisClient() if settings.REDIS_ENABLED else None)
    app.state.pdv = pdv

    @app.on_event("startup")
    async def startup_pdv():
        # Em produção, use migrações com Alembic
        if settings.ENVIRONMENT == "development":
            await pdv.criar_tabelas()
            logger.info("Tabelas criadas com sucesso (apenas em desenvolvimento)")
        await pdv.iniciar()

    @app.on_event("shutdown")
    async def shutdown_pdv():
        await pdv.encerrar()

    # Inclui todas as rotas da API V1
    app.include_router(api_router_v1, prefix=settings.API_V1_STR)

    @app.get("/", tags=["Root"])
    async def read_root():
        return {
            "message": f"Bem-vindo à API {settings.PROJECT_NAME} v{settings.PROJECT_VERSION}",
            "docs": "/docs",
            "status": "operacional",
            "environment": settings.ENVIRONMENT
        }

    @app.get("/health", tags=["Health Check"])
    async def health_check():
        """Endpoint para verificação de saúde da API"""
        return {
            "status": "healthy",
            "estado_carregado": pdv.estado.carregado,
            "agendador": "ativo" if pdv.agendador.em_execucao else "parado",
            "ajustes_caixa_disponivel": pdv.estado.ajustes_caixa_disponivel,
            "environment": settings.ENVIRONMENT
        }

    return app


app = create_app()
