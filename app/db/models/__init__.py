# Importa todos os modelos para que Base.metadata os conheça (create_all / Alembic)
from app.db.models.mesa import Mesa, StatusMesa
from app.db.models.caixa import AjusteCaixa, SessaoCaixa, StatusSessaoCaixa, TipoAjusteCaixa
from app.db.models.pedido import (
    ItemPedido,
    MetodoPagamento,
    METODOS_CAIXA,
    Pedido,
    STATUS_FINAIS,
    StatusPedido,
    TipoPedido,
)
