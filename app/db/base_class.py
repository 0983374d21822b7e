from sqlalchemy.orm import as_declarative, declared_attr
from sqlalchemy import Column, DateTime, Uuid, func
import uuid


@as_declarative()
class Base:
    """
    Base class which provides automated table name
    and surrogate primary key column.
    """

    @declared_attr
    def __tablename__(cls) -> str:
        return cls.__name__.lower() + "s"  # Ex: Mesa -> mesas

    # UUID genérico: nativo no PostgreSQL, CHAR(32) no SQLite.
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    data_criacao = Column(DateTime(timezone=True), server_default=func.now())
    data_atualizacao = Column(DateTime(timezone=True), onupdate=func.now())
