from datetime import datetime, timedelta, timezone

from app.db.models.pedido import StatusPedido, TipoPedido
from app.services.progresso import (
    ConfigProgressao,
    PROGRESSO_PARADO,
    calcular_progresso,
    deve_persistir_progresso,
    progresso_ao_vivo,
    resolver_destino_automatico,
)

AGORA = datetime(2025, 3, 14, 18, 0, tzinfo=timezone.utc)


def test_status_com_espera_liga_timer(config):
    progresso = calcular_progresso(StatusPedido.PENDENTE, config, AGORA)

    assert progresso.auto_progresso is True
    assert progresso.proxima_transicao_automatica == AGORA + timedelta(seconds=60)
    assert progresso.progresso_atual == 0


def test_status_final_e_retencao_param_progresso(config):
    assert calcular_progresso(StatusPedido.ENTREGUE, config, AGORA) == PROGRESSO_PARADO
    assert calcular_progresso(StatusPedido.CANCELADO, config, AGORA) == PROGRESSO_PARADO
    assert calcular_progresso(StatusPedido.PRONTO_PARA_RETIRADA, config, AGORA, retido=True) == PROGRESSO_PARADO


def test_status_sem_espera_fica_parado_em_100():
    config = ConfigProgressao(duracoes={StatusPedido.PENDENTE: timedelta(seconds=60)})

    progresso = calcular_progresso(StatusPedido.EM_PREPARO, config, AGORA)

    assert progresso.auto_progresso is False
    assert progresso.proxima_transicao_automatica is None
    assert progresso.progresso_atual == 100


def test_sequencia_padrao(config):
    assert resolver_destino_automatico(StatusPedido.PENDENTE, TipoPedido.BALCAO, config) == StatusPedido.EM_PREPARO
    assert (
        resolver_destino_automatico(StatusPedido.EM_PREPARO, TipoPedido.DELIVERY, config)
        == StatusPedido.PRONTO_PARA_RETIRADA
    )
    assert (
        resolver_destino_automatico(StatusPedido.SAIU_PARA_ENTREGA, TipoPedido.DELIVERY, config)
        == StatusPedido.ENTREGUE
    )
    assert resolver_destino_automatico(StatusPedido.ENTREGUE, TipoPedido.DELIVERY, config) is None


def test_so_delivery_sai_para_entrega(config):
    pronto = StatusPedido.PRONTO_PARA_RETIRADA

    assert resolver_destino_automatico(pronto, TipoPedido.DELIVERY, config) == StatusPedido.SAIU_PARA_ENTREGA
    assert resolver_destino_automatico(pronto, TipoPedido.BALCAO, config) == StatusPedido.ENTREGUE
    assert resolver_destino_automatico(pronto, TipoPedido.MESA, config) is None


def test_status_sem_espera_e_atravessado_na_transicao_automatica():
    config = ConfigProgressao(
        duracoes={
            StatusPedido.PENDENTE: timedelta(seconds=60),
            StatusPedido.EM_PREPARO: timedelta(seconds=120),
            StatusPedido.PRONTO_PARA_RETIRADA: timedelta(0),
            StatusPedido.SAIU_PARA_ENTREGA: timedelta(seconds=300),
        }
    )

    # Balcão: pronto sem espera -> entregue
    assert resolver_destino_automatico(StatusPedido.EM_PREPARO, TipoPedido.BALCAO, config) == StatusPedido.ENTREGUE
    # Delivery: pronto sem espera -> saiu para entrega (que tem espera)
    assert (
        resolver_destino_automatico(StatusPedido.EM_PREPARO, TipoPedido.DELIVERY, config)
        == StatusPedido.SAIU_PARA_ENTREGA
    )
    # Mesa: pronto é retenção, não é atravessado
    assert (
        resolver_destino_automatico(StatusPedido.EM_PREPARO, TipoPedido.MESA, config)
        == StatusPedido.PRONTO_PARA_RETIRADA
    )


def test_progresso_ao_vivo_e_limitado_entre_0_e_100(config):
    proxima = AGORA + timedelta(seconds=30)  # metade dos 60s de pendente

    assert progresso_ao_vivo(StatusPedido.PENDENTE, proxima, config, AGORA) == 50
    assert progresso_ao_vivo(StatusPedido.PENDENTE, proxima, config, AGORA + timedelta(minutes=5)) == 100
    assert progresso_ao_vivo(StatusPedido.PENDENTE, AGORA + timedelta(minutes=5), config, AGORA) == 0


def test_progresso_ao_vivo_sem_espera():
    config = ConfigProgressao(duracoes={})

    assert progresso_ao_vivo(StatusPedido.EM_PREPARO, AGORA, config, AGORA) == 100
    assert progresso_ao_vivo(StatusPedido.EM_PREPARO, AGORA + timedelta(seconds=1), config, AGORA) == 0


def test_limiar_de_persistencia():
    assert deve_persistir_progresso(3, 0, 5) is False
    assert deve_persistir_progresso(6, 0, 5) is True
    assert deve_persistir_progresso(100, 98, 5) is True
    assert deve_persistir_progresso(0, 2, 5) is True
    assert deve_persistir_progresso(100, 100, 5) is False
