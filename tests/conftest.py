import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.db import models  # noqa: F401  (registra as tabelas em Base.metadata)
from app.db.base_class import Base
from app.db.models.pedido import StatusPedido
from app.schemas.pedido import ItemPedidoCreateSchemas
from app.services.pdv_service import PDVService
from app.services.progresso import ConfigProgressao


class RelogioFalso:
    """
    Relógio controlado pelos testes: o tempo só anda com avancar().
    """

    def __init__(self, inicio: datetime):
        self.agora = inicio

    def __call__(self) -> datetime:
        return self.agora

    def avancar(self, **kwargs) -> datetime:
        self.agora = self.agora + timedelta(**kwargs)
        return self.agora


def criar_engine():
    return create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )


@pytest.fixture()
def relogio() -> RelogioFalso:
    return RelogioFalso(datetime(2025, 3, 14, 18, 0, tzinfo=timezone.utc))


@pytest.fixture()
def config() -> ConfigProgressao:
    return ConfigProgressao(
        duracoes={
            StatusPedido.PENDENTE: timedelta(seconds=60),
            StatusPedido.EM_PREPARO: timedelta(seconds=120),
            StatusPedido.PRONTO_PARA_RETIRADA: timedelta(seconds=60),
            StatusPedido.SAIU_PARA_ENTREGA: timedelta(seconds=300),
        }
    )


@pytest.fixture()
async def engine():
    """
    SQLite em memória isolado por teste (uma única conexão compartilhada).
    """
    engine = criar_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)


@pytest.fixture()
async def pdv(session_factory, config, relogio):
    pdv = PDVService(
        session_factory=session_factory,
        config=config,
        relogio=relogio,
        agendador_habilitado=False,
    )
    await pdv.iniciar()
    yield pdv
    await pdv.encerrar()


@pytest.fixture()
def fazer_item():
    def _fazer_item(preco: str = "10.00", quantidade: int = 1, nome: str = "Pizza Calabresa"):
        return ItemPedidoCreateSchemas(
            item_cardapio_id=uuid.uuid4(),
            nome=nome,
            quantidade=quantidade,
            preco=Decimal(preco),
        )

    return _fazer_item
