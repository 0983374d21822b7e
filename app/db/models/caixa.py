# app/db/models/caixa.py
import enum

from sqlalchemy import Column, DateTime, ForeignKey, Index, Numeric, Text, Enum as SAEnum, text
from sqlalchemy.orm import relationship

from app.db.base_class import Base


class StatusSessaoCaixa(str, enum.Enum):
    ABERTA = "open"
    FECHADA = "closed"


class TipoAjusteCaixa(str, enum.Enum):
    ENTRADA = "add"  # Suprimento
    SAIDA = "remove"  # Sangria


class SessaoCaixa(Base):
    __tablename__ = "sessoes_caixa"
    __table_args__ = (
        # No máximo uma sessão aberta; SAEnum grava o nome do membro.
        Index(
            "uq_sessoes_caixa_uma_aberta",
            "status",
            unique=True,
            postgresql_where=text("status = 'ABERTA'"),
            sqlite_where=text("status = 'ABERTA'"),
        ),
    )

    aberta_em = Column(DateTime(timezone=True), nullable=False)
    fechada_em = Column(DateTime(timezone=True), nullable=True)
    saldo_abertura = Column(Numeric(10, 2), nullable=False)
    vendas_calculadas = Column(Numeric(10, 2), nullable=True)
    esperado_em_caixa = Column(Numeric(10, 2), nullable=True)
    saldo_fechamento_informado = Column(Numeric(10, 2), nullable=True)
    diferenca = Column(Numeric(10, 2), nullable=True)
    observacoes_abertura = Column(Text, nullable=True)
    observacoes_fechamento = Column(Text, nullable=True)
    status = Column(SAEnum(StatusSessaoCaixa), nullable=False, default=StatusSessaoCaixa.ABERTA)

    ajustes = relationship("AjusteCaixa", back_populates="sessao", order_by="AjusteCaixa.ajustado_em")


class AjusteCaixa(Base):
    __tablename__ = "ajustes_caixa"

    sessao_id = Column(ForeignKey("sessoes_caixa.id"), nullable=False, index=True)
    tipo = Column(SAEnum(TipoAjusteCaixa), nullable=False)
    valor = Column(Numeric(10, 2), nullable=False)
    motivo = Column(Text, nullable=False)
    ajustado_em = Column(DateTime(timezone=True), nullable=False)

    sessao = relationship("SessaoCaixa", back_populates="ajustes")
