# app/schemas/relatorio.py
from typing import Optional
from decimal import Decimal
from datetime import date

from pydantic import BaseModel

from app.schemas.caixa import ResumoSessaoCaixaSchemas


class ResumoFinanceiro(BaseModel):
    data_referencia: date
    vendas_hoje: Decimal
    vendas_mes: Decimal
    vendas_ano: Decimal
    pedidos_entregues: int
    ticket_medio: Decimal
    sessao_ativa: Optional[ResumoSessaoCaixaSchemas] = None
