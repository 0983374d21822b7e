# app/schemas/mesa.py
from typing import Any, Dict, Optional
import uuid
from pydantic import BaseModel, validator

from app.db.models.mesa import StatusMesa  # Importar o Enum


class MesaBaseSchemas(BaseModel):
    nome: str
    capacidade: int = 4
    detalhes_reserva: Optional[Dict[str, Any]] = None

    @validator("capacidade")
    def capacidade_deve_ser_positiva(cls, v):
        if v <= 0:
            raise ValueError("Capacidade deve ser maior que zero")
        return v


class MesaCreateSchemas(MesaBaseSchemas):
    pass


class MesaUpdateSchemas(BaseModel):
    nome: Optional[str] = None
    capacidade: Optional[int] = None
    status: Optional[StatusMesa] = None
    pedido_atual_id: Optional[uuid.UUID] = None
    detalhes_reserva: Optional[Dict[str, Any]] = None


class MesaSchemas(MesaBaseSchemas):
    id: uuid.UUID
    status: StatusMesa
    pedido_atual_id: Optional[uuid.UUID] = None

    class Config:
        from_attributes = True
