import uuid
from datetime import timedelta
from decimal import Decimal

from app.crud.crud_pedido import crud_pedido
from app.db.models.pedido import MetodoPagamento, StatusPedido, TipoPedido
from app.schemas.mesa import MesaCreateSchemas
from app.schemas.pedido import PedidoManualCreateSchemas, PedidoOnlineCreateSchemas
from app.services.pdv_service import PDVService
from app.services.progresso import ConfigProgressao


async def _pedido_balcao(pdv, fazer_item, **kwargs):
    dados = {"nome_cliente": "Ana", "tipo_pedido": TipoPedido.BALCAO, "itens": [fazer_item("25.00", 2)]}
    dados.update(kwargs)
    pedido, _ = await pdv.pedidos.create_pedido_manual(PedidoManualCreateSchemas(**dados))
    assert pedido is not None
    return pedido


async def _pedido_mesa(pdv, fazer_item, nome_mesa="01"):
    mesa, _ = await pdv.mesas.create_mesa(MesaCreateSchemas(nome=nome_mesa))
    pedido, _ = await pdv.pedidos.create_pedido_manual(
        PedidoManualCreateSchemas(tipo_pedido=TipoPedido.MESA, mesa_id=mesa.id, itens=[fazer_item("40.00")])
    )
    return pedido, mesa


async def test_criacao_inicia_em_pendente_com_timer(pdv, fazer_item, relogio):
    fila = pdv.eventos.assinar()

    pedido = await _pedido_balcao(pdv, fazer_item)

    assert pedido.status == StatusPedido.PENDENTE
    assert pedido.valor_total == Decimal("50.00")
    assert len(pedido.itens) == 1
    assert pedido.auto_progresso is True
    assert pedido.progresso_atual == 0
    assert pedido.proxima_transicao_automatica == relogio() + timedelta(seconds=60)
    assert pdv.estado.pedidos[pedido.id] == pedido

    evento = fila.get_nowait()
    assert (evento.tabela, evento.tipo) == ("pedidos", "INSERT")
    assert evento.dados["id"] == str(pedido.id)


async def test_pedido_online_e_delivery(pdv, fazer_item):
    pedido, mensagem = await pdv.pedidos.create_pedido_online(
        PedidoOnlineCreateSchemas(
            nome_cliente="Bruno",
            telefone_cliente="11999990000",
            endereco_cliente="Rua das Flores, 10",
            itens=[fazer_item("30.00")],
        )
    )

    assert pedido.tipo_pedido == TipoPedido.DELIVERY
    assert pedido.metodo_pagamento is None
    assert "Bruno" in mensagem


async def test_pedido_online_sem_endereco_e_recusado(pdv, fazer_item):
    pedido, _ = await pdv.pedidos.create_pedido_online(
        PedidoOnlineCreateSchemas(
            nome_cliente="Bruno", telefone_cliente="1199", endereco_cliente="  ", itens=[fazer_item()]
        )
    )

    assert pedido is None
    assert pdv.estado.alerta.tipo == "error"


async def test_pedido_sem_itens_e_recusado(pdv):
    pedido, _ = await pdv.pedidos.create_pedido_manual(
        PedidoManualCreateSchemas(nome_cliente="Ana", tipo_pedido=TipoPedido.BALCAO, itens=[])
    )

    assert pedido is None
    assert pdv.estado.pedidos == {}


async def test_progresso_ao_vivo_grava_so_acima_do_limiar(pdv, fazer_item, relogio):
    pedido = await _pedido_balcao(pdv, fazer_item)

    relogio.avancar(seconds=30)
    assert await pdv.pedidos.check_pedido_transitions() == 1
    assert (await pdv.pedidos.fetch_pedido_com_itens(pedido.id)).progresso_atual == 50

    relogio.avancar(seconds=1)
    assert await pdv.pedidos.check_pedido_transitions() == 0
    # O espelho recebe o valor atual, o banco continua com o último gravado
    assert pdv.estado.pedidos[pedido.id].progresso_atual == 52
    assert (await pdv.pedidos.fetch_pedido_com_itens(pedido.id)).progresso_atual == 50


async def test_timer_vencido_avanca_status(pdv, fazer_item, relogio):
    pedido = await _pedido_balcao(pdv, fazer_item)

    agora = relogio.avancar(seconds=61)
    await pdv.pedidos.check_pedido_transitions()

    atualizado = await pdv.pedidos.fetch_pedido_com_itens(pedido.id)
    assert atualizado.status == StatusPedido.EM_PREPARO
    assert atualizado.auto_progresso is True
    assert atualizado.progresso_atual == 0
    assert atualizado.ultima_mudanca_status == agora
    assert atualizado.proxima_transicao_automatica == agora + timedelta(seconds=120)


async def test_balcao_pronto_vai_direto_para_entregue(pdv, fazer_item, relogio):
    pedido = await _pedido_balcao(pdv, fazer_item)
    await pdv.pedidos.update_pedido_status(pedido.id, StatusPedido.PRONTO_PARA_RETIRADA, manual=True)

    relogio.avancar(seconds=61)
    await pdv.pedidos.check_pedido_transitions()

    atualizado = await pdv.pedidos.fetch_pedido_com_itens(pedido.id)
    assert atualizado.status == StatusPedido.ENTREGUE
    assert atualizado.auto_progresso is False
    assert atualizado.proxima_transicao_automatica is None
    assert atualizado.progresso_atual == 100


async def test_delivery_pronto_sai_para_entrega(pdv, fazer_item, relogio):
    pedido = await _pedido_balcao(pdv, fazer_item, tipo_pedido=TipoPedido.DELIVERY)
    await pdv.pedidos.update_pedido_status(pedido.id, StatusPedido.PRONTO_PARA_RETIRADA, manual=True)

    relogio.avancar(seconds=61)
    await pdv.pedidos.check_pedido_transitions()

    atualizado = await pdv.pedidos.fetch_pedido_com_itens(pedido.id)
    assert atualizado.status == StatusPedido.SAIU_PARA_ENTREGA
    assert atualizado.auto_progresso is True


async def test_pedido_de_mesa_fica_retido_quando_pronto(pdv, fazer_item, relogio):
    pedido, _ = await _pedido_mesa(pdv, fazer_item)
    await pdv.pedidos.update_pedido_status(pedido.id, StatusPedido.EM_PREPARO, manual=True)

    relogio.avancar(seconds=121)
    await pdv.pedidos.check_pedido_transitions()

    atualizado = await pdv.pedidos.fetch_pedido_com_itens(pedido.id)
    assert atualizado.status == StatusPedido.PRONTO_PARA_RETIRADA
    assert atualizado.auto_progresso is False
    assert atualizado.proxima_transicao_automatica is None
    assert atualizado.progresso_atual == 100
    assert pdv.estado.alerta.tipo == "info"

    # Retido: nenhuma rodada posterior mexe no pedido
    relogio.avancar(hours=2)
    assert await pdv.pedidos.check_pedido_transitions() == 0
    assert (await pdv.pedidos.fetch_pedido_com_itens(pedido.id)).status == StatusPedido.PRONTO_PARA_RETIRADA


async def test_entrega_manual_de_pedido_de_mesa_e_apenas_aviso(pdv, fazer_item):
    pedido, _ = await _pedido_mesa(pdv, fazer_item)

    resultado, mensagem = await pdv.pedidos.update_pedido_status(pedido.id, StatusPedido.ENTREGUE, manual=True)

    assert resultado is None
    assert "fechamento da conta" in mensagem
    assert pdv.estado.alerta.tipo == "info"
    assert (await pdv.pedidos.fetch_pedido_com_itens(pedido.id)).status == StatusPedido.PENDENTE


async def test_cancelamento_para_o_progresso(pdv, fazer_item):
    pedido = await _pedido_balcao(pdv, fazer_item)

    cancelado, _ = await pdv.pedidos.update_pedido_status(pedido.id, StatusPedido.CANCELADO, manual=True)

    assert cancelado.status == StatusPedido.CANCELADO
    assert cancelado.auto_progresso is False
    assert cancelado.proxima_transicao_automatica is None
    assert cancelado.progresso_atual == 100


async def test_pedido_inexistente(pdv):
    resultado, mensagem = await pdv.pedidos.update_pedido_status(uuid.uuid4(), StatusPedido.EM_PREPARO)

    assert resultado is None
    assert "não encontrado" in mensagem


async def test_alternar_progresso_automatico(pdv, fazer_item, relogio):
    pedido = await _pedido_balcao(pdv, fazer_item)

    desligado, _ = await pdv.pedidos.toggle_auto_progress(pedido.id)
    assert desligado.auto_progresso is False
    assert desligado.proxima_transicao_automatica is None

    agora = relogio.avancar(seconds=500)
    ligado, _ = await pdv.pedidos.toggle_auto_progress(pedido.id)
    assert ligado.auto_progresso is True
    assert ligado.progresso_atual == 0
    assert ligado.ultima_mudanca_status == agora
    assert ligado.proxima_transicao_automatica == agora + timedelta(seconds=60)


async def test_nao_liga_progresso_em_status_sem_espera(session_factory, relogio, fazer_item):
    config = ConfigProgressao(duracoes={StatusPedido.PENDENTE: timedelta(seconds=60)})
    pdv = PDVService(session_factory=session_factory, config=config, relogio=relogio, agendador_habilitado=False)
    await pdv.iniciar()
    pedido = await _pedido_balcao(pdv, fazer_item)
    em_preparo, _ = await pdv.pedidos.update_pedido_status(pedido.id, StatusPedido.EM_PREPARO, manual=True)
    assert em_preparo.auto_progresso is False

    resultado, mensagem = await pdv.pedidos.toggle_auto_progress(pedido.id)

    assert resultado.auto_progresso is False
    assert resultado.proxima_transicao_automatica is None
    assert resultado.progresso_atual == 100
    assert "não pode ser ativado" in mensagem
    await pdv.encerrar()


async def test_nao_liga_progresso_em_pedido_de_mesa_retido(pdv, fazer_item):
    pedido, _ = await _pedido_mesa(pdv, fazer_item)
    await pdv.pedidos.update_pedido_status(pedido.id, StatusPedido.PRONTO_PARA_RETIRADA, manual=True)

    resultado, _ = await pdv.pedidos.toggle_auto_progress(pedido.id)

    assert resultado.status == StatusPedido.PRONTO_PARA_RETIRADA
    assert resultado.auto_progresso is False
    assert resultado.progresso_atual == 100
    assert pdv.estado.alerta.tipo == "info"


async def test_status_sem_espera_e_atravessado_pelo_agendador(session_factory, relogio, fazer_item):
    config = ConfigProgressao(
        duracoes={
            StatusPedido.PENDENTE: timedelta(seconds=60),
            StatusPedido.EM_PREPARO: timedelta(seconds=120),
        }
    )
    pdv = PDVService(session_factory=session_factory, config=config, relogio=relogio, agendador_habilitado=False)
    await pdv.iniciar()
    pedido = await _pedido_balcao(pdv, fazer_item)
    await pdv.pedidos.update_pedido_status(pedido.id, StatusPedido.EM_PREPARO, manual=True)

    relogio.avancar(seconds=121)
    await pdv.pedidos.check_pedido_transitions()

    atualizado = await pdv.pedidos.fetch_pedido_com_itens(pedido.id)
    assert atualizado.status == StatusPedido.ENTREGUE
    assert atualizado.progresso_atual == 100
    await pdv.encerrar()


async def test_adicionar_itens_em_preparo_volta_para_pendente(pdv, fazer_item, relogio):
    pedido = await _pedido_balcao(pdv, fazer_item)
    await pdv.pedidos.update_pedido_status(pedido.id, StatusPedido.EM_PREPARO, manual=True)

    agora = relogio.avancar(seconds=30)
    atualizado, _ = await pdv.pedidos.add_itens_pedido(pedido.id, [fazer_item("7.50", 2)])

    assert atualizado.status == StatusPedido.PENDENTE
    assert atualizado.valor_total == Decimal("65.00")
    assert len(atualizado.itens) == 2
    assert atualizado.progresso_atual == 0
    assert atualizado.auto_progresso is True
    assert atualizado.proxima_transicao_automatica == agora + timedelta(seconds=60)


async def test_adicionar_itens_sem_mudar_status_avancado(pdv, fazer_item):
    pedido = await _pedido_balcao(pdv, fazer_item, tipo_pedido=TipoPedido.DELIVERY)
    await pdv.pedidos.update_pedido_status(pedido.id, StatusPedido.SAIU_PARA_ENTREGA, manual=True)

    atualizado, _ = await pdv.pedidos.add_itens_pedido(pedido.id, [fazer_item("5.00")])

    assert atualizado.status == StatusPedido.SAIU_PARA_ENTREGA
    assert atualizado.valor_total == Decimal("55.00")


async def test_adicionar_itens_em_pedido_finalizado_e_recusado(pdv, fazer_item):
    pedido = await _pedido_balcao(pdv, fazer_item, metodo_pagamento=MetodoPagamento.PIX)
    await pdv.pedidos.update_pedido_status(pedido.id, StatusPedido.ENTREGUE, manual=True)

    resultado, _ = await pdv.pedidos.add_itens_pedido(pedido.id, [fazer_item("5.00")])

    assert resultado is None
    atual = await pdv.pedidos.fetch_pedido_com_itens(pedido.id)
    assert atual.valor_total == Decimal("50.00")
    assert len(atual.itens) == 1


async def test_adicionar_lista_vazia(pdv, fazer_item):
    pedido = await _pedido_balcao(pdv, fazer_item)

    resultado, _ = await pdv.pedidos.add_itens_pedido(pedido.id, [])

    assert resultado is None


async def test_falha_em_um_pedido_nao_interrompe_a_rodada(pdv, fazer_item, relogio, monkeypatch):
    primeiro = await _pedido_balcao(pdv, fazer_item)
    segundo = await _pedido_balcao(pdv, fazer_item, nome_cliente="Carla")
    original = pdv.pedidos._verificar_pedido

    async def falha_no_primeiro(pedido, agora):
        if pedido.id == primeiro.id:
            raise RuntimeError("falha simulada")
        return await original(pedido, agora)

    monkeypatch.setattr(pdv.pedidos, "_verificar_pedido", falha_no_primeiro)
    relogio.avancar(seconds=61)

    assert await pdv.pedidos.check_pedido_transitions() == 1
    assert (await pdv.pedidos.fetch_pedido_com_itens(segundo.id)).status == StatusPedido.EM_PREPARO
    assert (await pdv.pedidos.fetch_pedido_com_itens(primeiro.id)).status == StatusPedido.PENDENTE


async def test_cenario_balcao_com_pronto_sem_espera(session_factory, relogio, fazer_item):
    config = ConfigProgressao(
        duracoes={
            StatusPedido.PENDENTE: timedelta(seconds=300),
            StatusPedido.EM_PREPARO: timedelta(seconds=600),
            StatusPedido.PRONTO_PARA_RETIRADA: timedelta(0),
        }
    )
    pdv = PDVService(session_factory=session_factory, config=config, relogio=relogio, agendador_habilitado=False)
    await pdv.iniciar()
    inicio = relogio()

    pedido = await _pedido_balcao(pdv, fazer_item)
    assert pedido.status == StatusPedido.PENDENTE
    assert pedido.proxima_transicao_automatica == inicio + timedelta(seconds=300)

    agora = relogio.avancar(seconds=301)
    await pdv.pedidos.check_pedido_transitions()
    em_preparo = await pdv.pedidos.fetch_pedido_com_itens(pedido.id)
    assert em_preparo.status == StatusPedido.EM_PREPARO
    assert em_preparo.proxima_transicao_automatica == agora + timedelta(seconds=600)

    relogio.avancar(seconds=601)
    await pdv.pedidos.check_pedido_transitions()
    entregue = await pdv.pedidos.fetch_pedido_com_itens(pedido.id)
    assert entregue.status == StatusPedido.ENTREGUE
    assert entregue.auto_progresso is False
    assert entregue.progresso_atual == 100
    assert entregue.proxima_transicao_automatica is None
    await pdv.encerrar()


async def _falha_no_banco(*args, **kwargs):
    raise RuntimeError("conexão perdida")


async def test_falha_ao_gravar_status_mantem_espelho(pdv, fazer_item, monkeypatch):
    pedido = await _pedido_balcao(pdv, fazer_item)
    espelhado = pdv.estado.pedidos[pedido.id]
    monkeypatch.setattr(crud_pedido, "update", _falha_no_banco)

    resultado, mensagem = await pdv.pedidos.update_pedido_status(pedido.id, StatusPedido.EM_PREPARO, manual=True)

    assert resultado is None
    assert "conexão perdida" in mensagem
    assert pdv.estado.alerta.tipo == "error"
    assert pdv.estado.pedidos[pedido.id] == espelhado
    assert (await pdv.pedidos.fetch_pedido_com_itens(pedido.id)).status == StatusPedido.PENDENTE


async def test_falha_ao_alternar_progresso_mantem_espelho(pdv, fazer_item, monkeypatch):
    pedido = await _pedido_balcao(pdv, fazer_item)
    espelhado = pdv.estado.pedidos[pedido.id]
    monkeypatch.setattr(crud_pedido, "update", _falha_no_banco)

    resultado, mensagem = await pdv.pedidos.toggle_auto_progress(pedido.id)

    assert resultado is None
    assert "conexão perdida" in mensagem
    assert pdv.estado.alerta.tipo == "error"
    assert pdv.estado.pedidos[pedido.id] == espelhado
    assert (await pdv.pedidos.fetch_pedido_com_itens(pedido.id)).auto_progresso is True


async def test_progresso_calculado_nao_sobrescreve_mudanca_recente(pdv, fazer_item, relogio):
    lido_na_rodada = await _pedido_balcao(pdv, fazer_item)
    relogio.avancar(seconds=2)
    atualizado, _ = await pdv.pedidos.update_pedido_status(lido_na_rodada.id, StatusPedido.EM_PREPARO, manual=True)

    # A rodada ainda trabalha com o pedido lido antes da mudança manual
    assert await pdv.pedidos._verificar_pedido(lido_na_rodada, relogio()) is False

    espelhado = pdv.estado.pedidos[lido_na_rodada.id]
    assert espelhado.status == StatusPedido.EM_PREPARO
    assert espelhado.proxima_transicao_automatica == atualizado.proxima_transicao_automatica
    assert espelhado.progresso_atual == 0


async def test_progresso_abaixo_do_limiar_preserva_demais_campos_do_espelho(pdv, fazer_item, relogio):
    pedido = await _pedido_balcao(pdv, fazer_item)
    pdv.estado.pedidos[pedido.id] = pedido.model_copy(update={"observacoes": "Sem cebola"})
    relogio.avancar(seconds=2)

    await pdv.pedidos._verificar_pedido(pedido, relogio())

    espelhado = pdv.estado.pedidos[pedido.id]
    assert espelhado.progresso_atual == 3
    assert espelhado.observacoes == "Sem cebola"
