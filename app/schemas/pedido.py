# app/schemas/pedido.py
import uuid
from typing import Optional, List
from decimal import Decimal
from datetime import datetime

from pydantic import BaseModel, validator

from app.core.dinheiro import validar_centavos
from app.core.relogio import como_utc
from app.db.models.pedido import MetodoPagamento, StatusPedido, TipoPedido  # Importar Enums


# --- ItemPedido Schemas ---
class SaborPizzaSchemas(BaseModel):
    item_cardapio_id: uuid.UUID
    nome: str
    preco_tamanho: Decimal
    imagem_url: Optional[str] = None


class ItemPedidoBaseSchemas(BaseModel):
    item_cardapio_id: uuid.UUID
    nome: str
    quantidade: int
    preco: Decimal  # Preço unitário capturado no carrinho, nunca recalculado

    tamanho_id: Optional[str] = None
    borda_id: Optional[str] = None
    meio_a_meio: bool = False
    primeiro_sabor: Optional[SaborPizzaSchemas] = None
    segundo_sabor: Optional[SaborPizzaSchemas] = None

    @validator("quantidade")
    def quantidade_deve_ser_positiva(cls, v):
        if v <= 0:
            raise ValueError("Quantidade deve ser maior que zero")
        return v

    @validator("preco")
    def preco_nao_pode_ser_negativo(cls, v):
        if v < 0:
            raise ValueError("Preço não pode ser negativo")
        return validar_centavos(v)


class ItemPedidoCreateSchemas(ItemPedidoBaseSchemas):
    pass


class ItemPedidoSchemas(ItemPedidoBaseSchemas):
    id: uuid.UUID
    pedido_id: uuid.UUID
    data_criacao: Optional[datetime] = None

    class Config:
        from_attributes = True


# --- Pedido Schemas ---
class PedidoManualCreateSchemas(BaseModel):
    """Pedido lançado pela equipe (balcão, mesa ou delivery por telefone)."""
    nome_cliente: str = ""
    telefone_cliente: Optional[str] = None
    endereco_cliente: Optional[str] = None
    referencia_endereco: Optional[str] = None
    observacoes: Optional[str] = None
    itens: List[ItemPedidoCreateSchemas]

    tipo_pedido: TipoPedido
    mesa_id: Optional[uuid.UUID] = None
    metodo_pagamento: Optional[MetodoPagamento] = None
    valor_pago: Optional[Decimal] = None

    @validator("valor_pago")
    def valor_pago_nao_negativo(cls, v):
        if v is not None and v < 0:
            raise ValueError("Valor pago não pode ser negativo")
        return validar_centavos(v)


class PedidoOnlineCreateSchemas(BaseModel):
    """Pedido feito pelo cliente no cardápio online; sempre delivery."""
    nome_cliente: str
    telefone_cliente: str
    endereco_cliente: str
    referencia_endereco: Optional[str] = None
    observacoes: Optional[str] = None
    cliente_id: Optional[uuid.UUID] = None
    itens: List[ItemPedidoCreateSchemas]


class PedidoSchemas(BaseModel):
    id: uuid.UUID
    cliente_id: Optional[uuid.UUID] = None
    nome_cliente: str
    telefone_cliente: Optional[str] = None
    endereco_cliente: Optional[str] = None
    referencia_endereco: Optional[str] = None
    observacoes: Optional[str] = None
    itens: List[ItemPedidoSchemas] = []

    valor_total: Decimal
    status: StatusPedido
    tipo_pedido: TipoPedido
    mesa_id: Optional[uuid.UUID] = None
    metodo_pagamento: Optional[MetodoPagamento] = None
    valor_pago: Optional[Decimal] = None
    troco: Optional[Decimal] = None
    sessao_caixa_id: Optional[uuid.UUID] = None

    hora_pedido: datetime
    ultima_mudanca_status: datetime
    proxima_transicao_automatica: Optional[datetime] = None
    auto_progresso: bool
    progresso_atual: int

    @validator("hora_pedido", "ultima_mudanca_status", "proxima_transicao_automatica")
    def datas_em_utc(cls, v):
        return como_utc(v)

    class Config:
        from_attributes = True


class PedidoStatusUpdateSchemas(BaseModel):
    status: StatusPedido


class AdicionarItensSchemas(BaseModel):
    itens: List[ItemPedidoCreateSchemas]


class DetalhesPagamentoSchemas(BaseModel):
    metodo_pagamento: MetodoPagamento
    valor_pago: Optional[Decimal] = None  # Valor entregue pelo cliente (dinheiro)

    @validator("valor_pago")
    def valor_pago_nao_negativo(cls, v):
        if v is not None and v < 0:
            raise ValueError("Valor pago não pode ser negativo")
        return validar_centavos(v)
