# app/db/models/mesa.py
from sqlalchemy import Column, String, Integer, JSON, Uuid, Enum as SAEnum
import enum

from app.db.base_class import Base


class StatusMesa(str, enum.Enum):
    DISPONIVEL = "Disponível"
    OCUPADA = "Ocupada"
    RESERVADA = "Reservada"
    LIMPEZA_PENDENTE = "Limpeza Pendente"  # Conta fechada, aguardando limpeza


class Mesa(Base):
    nome = Column(String, nullable=False, unique=True, index=True)  # Ex: "01", "Varanda 3"
    capacidade = Column(Integer, nullable=False, default=4)
    status = Column(SAEnum(StatusMesa), default=StatusMesa.DISPONIVEL, nullable=False)

    # Referência fraca ao pedido em andamento (apenas consulta, sem FK)
    pedido_atual_id = Column(Uuid(as_uuid=True), nullable=True)

    # Ex: {"nome_cliente": "Ana", "horario": "20:00", "quantidade_pessoas": 4}
    detalhes_reserva = Column(JSON, nullable=True)
