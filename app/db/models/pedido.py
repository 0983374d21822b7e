# app/db/models/pedido.py
import enum

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Integer, JSON, Numeric, String, Text, Uuid,
    Enum as SAEnum, func,
)
from sqlalchemy.orm import relationship

from app.db.base_class import Base


class StatusPedido(str, enum.Enum):
    PENDENTE = "Pendente"
    EM_PREPARO = "Em Preparo"
    PRONTO_PARA_RETIRADA = "Pronto para Retirada"
    SAIU_PARA_ENTREGA = "Saiu para Entrega"
    ENTREGUE = "Entregue"
    CANCELADO = "Cancelado"


STATUS_FINAIS = (StatusPedido.ENTREGUE, StatusPedido.CANCELADO)


class TipoPedido(str, enum.Enum):
    MESA = "Mesa"
    DELIVERY = "Delivery"
    BALCAO = "Balcão"


class MetodoPagamento(str, enum.Enum):
    DINHEIRO = "Dinheiro"
    CARTAO_DEBITO = "Cartão de Débito"
    CARTAO_CREDITO = "Cartão de Crédito"
    PIX = "PIX"
    MULTIPLO = "Múltiplo"


# Métodos que movimentam a gaveta do caixa
METODOS_CAIXA = (MetodoPagamento.DINHEIRO, MetodoPagamento.PIX)


class Pedido(Base):
    __tablename__ = "pedidos"

    cliente_id = Column(Uuid(as_uuid=True), nullable=True)  # Conta do cliente (app online), se houver
    nome_cliente = Column(String, nullable=False)
    telefone_cliente = Column(String, nullable=True)
    endereco_cliente = Column(String, nullable=True)
    referencia_endereco = Column(String, nullable=True)
    observacoes = Column(Text, nullable=True)

    valor_total = Column(Numeric(10, 2), nullable=False, default=0)
    status = Column(SAEnum(StatusPedido), nullable=False, default=StatusPedido.PENDENTE, index=True)
    tipo_pedido = Column(SAEnum(TipoPedido), nullable=False, default=TipoPedido.BALCAO)
    mesa_id = Column(ForeignKey("mesas.id"), nullable=True)

    metodo_pagamento = Column(SAEnum(MetodoPagamento), nullable=True)
    valor_pago = Column(Numeric(10, 2), nullable=True)
    troco = Column(Numeric(10, 2), nullable=True)
    sessao_caixa_id = Column(ForeignKey("sessoes_caixa.id"), nullable=True, index=True)

    hora_pedido = Column(DateTime(timezone=True), nullable=False)
    ultima_mudanca_status = Column(DateTime(timezone=True), nullable=False)
    proxima_transicao_automatica = Column(DateTime(timezone=True), nullable=True)
    auto_progresso = Column(Boolean, nullable=False, default=False)
    progresso_atual = Column(Integer, nullable=False, default=0)

    itens = relationship(
        "ItemPedido",
        back_populates="pedido",
        cascade="all, delete-orphan",
        order_by="ItemPedido.data_criacao",
        lazy="selectin",
    )


class ItemPedido(Base):
    __tablename__ = "itens_pedido"

    pedido_id = Column(ForeignKey("pedidos.id"), nullable=False, index=True)
    item_cardapio_id = Column(Uuid(as_uuid=True), nullable=False)  # Cardápio é externo, sem FK
    nome = Column(String, nullable=False)  # Nome no momento do pedido
    quantidade = Column(Integer, nullable=False)
    preco = Column(Numeric(10, 2), nullable=False)  # Preço unitário no momento do pedido

    # Pizza
    tamanho_id = Column(String, nullable=True)
    borda_id = Column(String, nullable=True)
    meio_a_meio = Column(Boolean, nullable=False, default=False)
    primeiro_sabor = Column(JSON, nullable=True)
    segundo_sabor = Column(JSON, nullable=True)

    pedido = relationship("Pedido", back_populates="itens")
