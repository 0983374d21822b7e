from .caixa import (
    AbrirCaixaSchemas,
    AjusteCaixaCreateSchemas,
    AjusteCaixaSchemas,
    FecharCaixaSchemas,
    ResumoSessaoCaixaSchemas,
    SessaoCaixaSchemas,
)
from .evento import Alerta, EstadoSchemas, Evento
from .mesa import MesaCreateSchemas, MesaSchemas, MesaUpdateSchemas
from .pedido import (
    AdicionarItensSchemas,
    DetalhesPagamentoSchemas,
    ItemPedidoCreateSchemas,
    ItemPedidoSchemas,
    PedidoManualCreateSchemas,
    PedidoOnlineCreateSchemas,
    PedidoSchemas,
    PedidoStatusUpdateSchemas,
    SaborPizzaSchemas,
)
from .relatorio import ResumoFinanceiro
