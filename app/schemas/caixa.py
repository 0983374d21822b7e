# app/schemas/caixa.py
import uuid
from typing import Dict, Optional
from decimal import Decimal
from datetime import datetime

from pydantic import BaseModel, validator

from app.core.dinheiro import validar_centavos
from app.core.relogio import como_utc
from app.db.models.caixa import StatusSessaoCaixa, TipoAjusteCaixa


class AbrirCaixaSchemas(BaseModel):
    saldo_abertura: Decimal
    observacoes: Optional[str] = None

    @validator("saldo_abertura")
    def valor_em_centavos(cls, v):
        return validar_centavos(v)


class FecharCaixaSchemas(BaseModel):
    saldo_fechamento_informado: Decimal
    observacoes: Optional[str] = None

    @validator("saldo_fechamento_informado")
    def valor_em_centavos(cls, v):
        return validar_centavos(v)


class AjusteCaixaCreateSchemas(BaseModel):
    tipo: TipoAjusteCaixa
    valor: Decimal
    motivo: str

    @validator("valor")
    def valor_em_centavos(cls, v):
        return validar_centavos(v)


class SessaoCaixaSchemas(BaseModel):
    id: uuid.UUID
    aberta_em: datetime
    fechada_em: Optional[datetime] = None
    saldo_abertura: Decimal
    vendas_calculadas: Optional[Decimal] = None
    esperado_em_caixa: Optional[Decimal] = None
    saldo_fechamento_informado: Optional[Decimal] = None
    diferenca: Optional[Decimal] = None
    observacoes_abertura: Optional[str] = None
    observacoes_fechamento: Optional[str] = None
    status: StatusSessaoCaixa

    @validator("aberta_em", "fechada_em")
    def datas_em_utc(cls, v):
        return como_utc(v)

    class Config:
        from_attributes = True


class AjusteCaixaSchemas(BaseModel):
    id: uuid.UUID
    sessao_id: uuid.UUID
    tipo: TipoAjusteCaixa
    valor: Decimal
    motivo: str
    ajustado_em: datetime

    @validator("ajustado_em")
    def data_em_utc(cls, v):
        return como_utc(v)

    class Config:
        from_attributes = True


class ResumoSessaoCaixaSchemas(BaseModel):
    sessao_id: uuid.UUID
    status: StatusSessaoCaixa
    saldo_abertura: Decimal
    # Todos os pedidos vinculados à sessão com pagamento, por método
    vendas_por_metodo: Dict[str, Decimal]
    vendas_total: Decimal
    # Somente dinheiro/PIX entregues: entram no saldo esperado
    vendas_caixa: Decimal
    ajustes_entrada: Decimal
    ajustes_saida: Decimal
    ajustes_liquido: Decimal
    esperado_em_caixa: Decimal

    @validator("vendas_por_metodo")
    def metodos_ordenados(cls, v):
        return dict(sorted(v.items()))
