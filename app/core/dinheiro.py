# app/core/dinheiro.py
from decimal import Decimal

# As colunas monetárias são Numeric(10, 2)
CENTAVO = Decimal("0.01")


def em_centavos(valor: Decimal) -> bool:
    """True se o valor é finito e não tem fração de centavo."""
    return valor.is_finite() and valor == valor.quantize(CENTAVO)


def validar_centavos(valor):
    if valor is not None and not em_centavos(valor):
        raise ValueError("Valor monetário deve ter no máximo duas casas decimais")
    return valor
