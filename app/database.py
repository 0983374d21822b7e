from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from app.core.config import settings

# Motor assíncrono; SQL no log apenas em desenvolvimento
engine = create_async_engine(settings.DATABASE_URL, echo=settings.ENVIRONMENT == "development")

# Fábrica de sessões usada pelos serviços do PDV (uma sessão por operação)
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)
