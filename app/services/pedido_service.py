# app/services/pedido_service.py
"""
Ciclo de vida dos pedidos: criação, mudança de status (manual ou
automática), verificação periódica dos timers, ativação do progresso
automático e inclusão de itens.

Os métodos públicos devolvem ``(pedido, mensagem)`` e não levantam exceções:
falhas viram alerta no estado e ``pedido`` volta como None. Toda escrita é
seguida de uma releitura do pedido completo, que é o que vai para o espelho
e para o feed.
"""
import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.logging import get_logger
from app.core.relogio import Relogio, agora_utc, como_utc
from app.crud.crud_caixa import sessao_caixa as crud_sessao_caixa
from app.crud.crud_mesa import mesa as crud_mesa
from app.crud.crud_pedido import crud_item_pedido, crud_pedido
from app.database import AsyncSessionLocal
from app.db.models.mesa import StatusMesa
from app.db.models.pedido import (
    METODOS_CAIXA,
    MetodoPagamento,
    Pedido,
    STATUS_FINAIS,
    StatusPedido,
    TipoPedido,
)
from app.schemas.mesa import MesaSchemas
from app.schemas.pedido import (
    ItemPedidoCreateSchemas,
    PedidoManualCreateSchemas,
    PedidoOnlineCreateSchemas,
    PedidoSchemas,
)
from app.services.estado_service import EstadoService
from app.services.progresso import (
    ConfigProgressao,
    PROGRESSO_PARADO,
    calcular_progresso,
    deve_persistir_progresso,
    is_retencao_mesa,
    progresso_ao_vivo,
    resolver_destino_automatico,
)

logger = get_logger("pedidos")


def _total_itens(itens: List[ItemPedidoCreateSchemas]) -> Decimal:
    return sum((item.preco * item.quantidade for item in itens), Decimal("0"))


def _id_curto(pedido_id: uuid.UUID) -> str:
    return str(pedido_id)[:6]


class PedidoService:
    def __init__(
        self,
        estado: EstadoService,
        *,
        session_factory: async_sessionmaker = AsyncSessionLocal,
        config: Optional[ConfigProgressao] = None,
        relogio: Relogio = agora_utc,
        limiar_progresso: int = settings.PROGRESSO_LIMIAR_PERSISTENCIA,
    ):
        self.estado = estado
        self.session_factory = session_factory
        self.config = config or ConfigProgressao.from_settings()
        self.relogio = relogio
        self.limiar_progresso = limiar_progresso

    async def _reler(self, db: AsyncSession, pedido_id: uuid.UUID) -> Optional[PedidoSchemas]:
        db_pedido = await crud_pedido.get(db, pedido_id)
        return PedidoSchemas.model_validate(db_pedido) if db_pedido else None

    async def fetch_pedido_com_itens(self, pedido_id: uuid.UUID) -> Optional[PedidoSchemas]:
        async with self.session_factory() as db:
            return await self._reler(db, pedido_id)

    async def listar_pedidos(self, *, skip: int = 0, limit: int = 100,
                             status: Optional[StatusPedido] = None) -> List[PedidoSchemas]:
        async with self.session_factory() as db:
            pedidos = await crud_pedido.get_multi(db, skip=skip, limit=limit, status=status)
            return [PedidoSchemas.model_validate(p) for p in pedidos]

    async def _persistir_campos(self, pedido_id: uuid.UUID, campos: Dict[str, Any]) -> Optional[PedidoSchemas]:
        async with self.session_factory() as db:
            try:
                if not await crud_pedido.update(db, id=pedido_id, campos=campos):
                    return None
                await db.commit()
                snapshot = await self._reler(db, pedido_id)
            except Exception as e:
                await db.rollback()
                logger.error(f"Erro ao atualizar pedido {pedido_id}: {e}")
                await self.estado.alertar(f"Falha ao atualizar pedido: {e}", "error")
                return None
        if snapshot:
            await self.estado.publicar_pedido(snapshot)
        return snapshot

    # --- Criação ---

    async def _inserir_pedido(
        self,
        *,
        dados: Dict[str, Any],
        itens: List[ItemPedidoCreateSchemas],
        mesa_id: Optional[uuid.UUID] = None,
    ) -> Tuple[Optional[PedidoSchemas], Optional[MesaSchemas], Optional[str]]:
        """
        Grava o pedido e seus itens e, se for de mesa e a mesa estiver
        disponível, ocupa a mesa na mesma transação.
        """
        async with self.session_factory() as db:
            try:
                db_mesa = None
                if mesa_id:
                    db_mesa = await crud_mesa.get(db, mesa_id)
                    if not db_mesa:
                        return None, None, "Mesa não encontrada."
                    if not dados.get("nome_cliente"):
                        dados["nome_cliente"] = f"Mesa {db_mesa.nome}"

                db_pedido = await crud_pedido.create(db, dados=dados, itens_in=itens)
                pedido_id = db_pedido.id

                mesa_ocupada = False
                if db_mesa and db_mesa.status == StatusMesa.DISPONIVEL:
                    await crud_mesa.update(
                        db, id=db_mesa.id, campos={"status": StatusMesa.OCUPADA, "pedido_atual_id": pedido_id}
                    )
                    mesa_ocupada = True

                await db.commit()
                snapshot = await self._reler(db, pedido_id)
                mesa_snapshot = None
                if mesa_ocupada:
                    mesa_snapshot = MesaSchemas.model_validate(await crud_mesa.get(db, db_mesa.id))
            except Exception as e:
                await db.rollback()
                logger.error(f"Erro ao criar pedido: {e}")
                return None, None, f"Falha ao criar pedido: {e}"
        return snapshot, mesa_snapshot, None

    async def create_pedido_manual(
        self, pedido_in: PedidoManualCreateSchemas
    ) -> Tuple[Optional[PedidoSchemas], Optional[str]]:
        if not pedido_in.itens:
            return None, await self.estado.alertar("Nenhum item no pedido.", "info")
        if pedido_in.tipo_pedido == TipoPedido.MESA and not pedido_in.mesa_id:
            return None, await self.estado.alertar("Selecione a mesa do pedido.", "error")

        agora = self.relogio()
        valor_total = _total_itens(pedido_in.itens)
        dados: Dict[str, Any] = {
            "nome_cliente": pedido_in.nome_cliente.strip(),
            "telefone_cliente": pedido_in.telefone_cliente,
            "endereco_cliente": pedido_in.endereco_cliente,
            "referencia_endereco": pedido_in.referencia_endereco,
            "observacoes": pedido_in.observacoes,
            "valor_total": valor_total,
            "status": StatusPedido.PENDENTE,
            "tipo_pedido": pedido_in.tipo_pedido,
            "mesa_id": pedido_in.mesa_id,
            "hora_pedido": agora,
            "ultima_mudanca_status": agora,
            **calcular_progresso(StatusPedido.PENDENTE, self.config, agora).como_campos(),
        }

        aviso_caixa = None
        # Pedido de mesa só é pago no fechamento da conta
        if pedido_in.tipo_pedido != TipoPedido.MESA and pedido_in.metodo_pagamento:
            metodo = pedido_in.metodo_pagamento
            dados["metodo_pagamento"] = metodo
            if metodo == MetodoPagamento.DINHEIRO:
                dados["valor_pago"] = pedido_in.valor_pago
                if pedido_in.valor_pago is not None and pedido_in.valor_pago >= valor_total:
                    dados["troco"] = pedido_in.valor_pago - valor_total
            if metodo in METODOS_CAIXA:
                async with self.session_factory() as db:
                    sessao = await crud_sessao_caixa.get_aberta(db)
                if sessao:
                    dados["sessao_caixa_id"] = sessao.id
                else:
                    aviso_caixa = "Nenhum caixa aberto: pagamento registrado sem vínculo com sessão de caixa."

        snapshot, mesa_snapshot, erro = await self._inserir_pedido(
            dados=dados, itens=pedido_in.itens, mesa_id=pedido_in.mesa_id
        )
        if erro:
            return None, await self.estado.alertar(erro, "error")

        await self.estado.publicar_pedido(snapshot, "INSERT")
        if mesa_snapshot:
            await self.estado.publicar_mesa(mesa_snapshot)
        if aviso_caixa:
            await self.estado.alertar(aviso_caixa, "info")
        mensagem = await self.estado.alertar(f"Pedido para {snapshot.nome_cliente} criado!", "success")
        return snapshot, mensagem

    async def create_pedido_online(
        self, pedido_in: PedidoOnlineCreateSchemas
    ) -> Tuple[Optional[PedidoSchemas], Optional[str]]:
        if not pedido_in.itens:
            return None, await self.estado.alertar("Nenhum item no pedido.", "info")
        nome = pedido_in.nome_cliente.strip()
        telefone = pedido_in.telefone_cliente.strip()
        endereco = pedido_in.endereco_cliente.strip()
        if not (nome and telefone and endereco):
            return None, await self.estado.alertar("Nome, telefone e endereço são obrigatórios.", "error")

        agora = self.relogio()
        dados = {
            "cliente_id": pedido_in.cliente_id,
            "nome_cliente": nome,
            "telefone_cliente": telefone,
            "endereco_cliente": endereco,
            "referencia_endereco": pedido_in.referencia_endereco,
            "observacoes": pedido_in.observacoes,
            "valor_total": _total_itens(pedido_in.itens),
            "status": StatusPedido.PENDENTE,
            "tipo_pedido": TipoPedido.DELIVERY,
            "hora_pedido": agora,
            "ultima_mudanca_status": agora,
            **calcular_progresso(StatusPedido.PENDENTE, self.config, agora).como_campos(),
        }
        snapshot, _, erro = await self._inserir_pedido(dados=dados, itens=pedido_in.itens)
        if erro:
            return None, await self.estado.alertar(erro, "error")

        await self.estado.publicar_pedido(snapshot, "INSERT")
        mensagem = await self.estado.alertar(f"Novo pedido online de {nome}!", "success")
        return snapshot, mensagem

    # --- Mudança de status ---

    def _campos_transicao(self, tipo_pedido: TipoPedido, novo_status: StatusPedido) -> Dict[str, Any]:
        agora = self.relogio()
        retido = is_retencao_mesa(tipo_pedido, novo_status)
        progresso = calcular_progresso(novo_status, self.config, agora, retido=retido)
        return {"status": novo_status, "ultima_mudanca_status": agora, **progresso.como_campos()}

    async def update_pedido_status(
        self, pedido_id: uuid.UUID, novo_status: StatusPedido, manual: bool = False
    ) -> Tuple[Optional[PedidoSchemas], Optional[str]]:
        """
        Muda o status do pedido e recalcula timer e progresso.

        Pedido de mesa não pode ser marcado como entregue manualmente: isso é
        feito pelo fechamento da conta. Ao chegar em "Pronto para Retirada",
        pedido de mesa fica retido (sem progresso automático).
        """
        async with self.session_factory() as db:
            try:
                db_pedido = await crud_pedido.get(db, pedido_id)
                if not db_pedido:
                    return None, await self.estado.alertar(f"Pedido {_id_curto(pedido_id)} não encontrado.", "error")
                tipo_pedido = db_pedido.tipo_pedido
                if manual and tipo_pedido == TipoPedido.MESA and novo_status == StatusPedido.ENTREGUE:
                    return None, await self.estado.alertar(
                        "Pedidos de mesa são finalizados pelo fechamento da conta da mesa.", "info"
                    )

                await crud_pedido.update(db, id=pedido_id, campos=self._campos_transicao(tipo_pedido, novo_status))
                await db.commit()
                snapshot = await self._reler(db, pedido_id)
            except Exception as e:
                await db.rollback()
                logger.error(f"Erro ao atualizar status do pedido {pedido_id}: {e}")
                return None, await self.estado.alertar(f"Falha ao atualizar status do pedido: {e}", "error")

        logger.info(f"Pedido {pedido_id} -> {novo_status.value} ({'manual' if manual else 'automático'})")
        await self.estado.publicar_pedido(snapshot)
        if is_retencao_mesa(tipo_pedido, novo_status):
            mensagem = await self.estado.alertar(
                f"Pedido {_id_curto(pedido_id)} da mesa pronto! Aguardando fechamento da conta.", "info"
            )
        else:
            mensagem = f"Status do pedido atualizado para {novo_status.value}"
        return snapshot, mensagem

    async def check_pedido_transitions(self) -> int:
        """
        Uma rodada do agendador: avança os pedidos com timer vencido e
        atualiza o progresso dos demais. Devolve quantos pedidos foram
        alterados no banco. Falha em um pedido não interrompe os outros.
        """
        agora = self.relogio()
        try:
            async with self.session_factory() as db:
                candidatos = [
                    PedidoSchemas.model_validate(p) for p in await crud_pedido.get_multi_auto_progresso(db)
                ]
        except Exception as e:
            logger.error(f"Erro ao buscar pedidos para progressão automática: {e}")
            await self.estado.alertar(f"Falha na verificação automática de pedidos: {e}", "error")
            return 0

        alterados = 0
        for pedido in candidatos:
            try:
                if await self._verificar_pedido(pedido, agora):
                    alterados += 1
            except Exception as e:
                logger.exception(f"Erro na progressão automática do pedido {pedido.id}")
                await self.estado.alertar(f"Falha na progressão do pedido {_id_curto(pedido.id)}: {e}", "error")
        return alterados

    async def _verificar_pedido(self, pedido: PedidoSchemas, agora) -> bool:
        proxima = como_utc(pedido.proxima_transicao_automatica)
        if agora >= proxima:
            destino = resolver_destino_automatico(pedido.status, pedido.tipo_pedido, self.config)
            if destino is None:
                # Fim da sequência: desliga o progresso automático
                return await self._persistir_campos(pedido.id, PROGRESSO_PARADO.como_campos()) is not None
            resultado, _ = await self.update_pedido_status(pedido.id, destino, manual=False)
            return resultado is not None

        progresso = progresso_ao_vivo(pedido.status, proxima, self.config, agora)
        if deve_persistir_progresso(progresso, pedido.progresso_atual, self.limiar_progresso):
            return await self._persistir_campos(pedido.id, {"progresso_atual": progresso}) is not None

        # Sem gravação, mas os assinantes recebem o valor atual. Só o progresso
        # entra no espelho; se o pedido mudou durante a rodada, o valor calculado
        # já não vale.
        espelhado = self.estado.pedidos.get(pedido.id)
        if espelhado is None:
            espelhado = pedido
        elif (
            espelhado.status != pedido.status
            or espelhado.proxima_transicao_automatica != pedido.proxima_transicao_automatica
        ):
            return False
        if espelhado.progresso_atual != progresso:
            await self.estado.publicar_pedido(espelhado.model_copy(update={"progresso_atual": progresso}))
        return False

    async def toggle_auto_progress(self, pedido_id: uuid.UUID) -> Tuple[Optional[PedidoSchemas], Optional[str]]:
        agora = self.relogio()
        async with self.session_factory() as db:
            try:
                db_pedido: Optional[Pedido] = await crud_pedido.get(db, pedido_id)
                if not db_pedido:
                    return None, await self.estado.alertar(f"Pedido {_id_curto(pedido_id)} não encontrado.", "error")

                recusa = None
                if is_retencao_mesa(db_pedido.tipo_pedido, db_pedido.status):
                    campos = PROGRESSO_PARADO.como_campos()
                    recusa = "Pedido de mesa pronto aguarda o fechamento da conta; progresso automático não disponível."
                elif db_pedido.auto_progresso:
                    campos = {"auto_progresso": False, "proxima_transicao_automatica": None}
                else:
                    progresso = calcular_progresso(db_pedido.status, self.config, agora)
                    campos = progresso.como_campos()
                    if progresso.auto_progresso:
                        campos["ultima_mudanca_status"] = agora
                    else:
                        recusa = (
                            f"Progresso automático não pode ser ativado para pedidos "
                            f"com status \"{db_pedido.status.value}\"."
                        )

                await crud_pedido.update(db, id=pedido_id, campos=campos)
                await db.commit()
                snapshot = await self._reler(db, pedido_id)
            except Exception as e:
                await db.rollback()
                logger.error(f"Erro ao alternar progresso automático do pedido {pedido_id}: {e}")
                return None, await self.estado.alertar(f"Falha ao alternar progresso automático: {e}", "error")

        await self.estado.publicar_pedido(snapshot)
        if recusa:
            return snapshot, await self.estado.alertar(recusa, "info")
        estado_auto = "ativado" if snapshot.auto_progresso else "desativado"
        return snapshot, await self.estado.alertar(
            f"Progresso automático {estado_auto} para o pedido {_id_curto(pedido_id)}.", "success"
        )

    # --- Itens ---

    async def add_itens_pedido(
        self, pedido_id: uuid.UUID, itens: List[ItemPedidoCreateSchemas]
    ) -> Tuple[Optional[PedidoSchemas], Optional[str]]:
        """
        Acrescenta itens a um pedido em andamento. O total é incrementado no
        próprio UPDATE. Pedido em preparo volta para pendente; pendente tem
        o timer reiniciado.
        """
        if not itens:
            return None, await self.estado.alertar("Nenhum item para adicionar.", "info")

        agora = self.relogio()
        async with self.session_factory() as db:
            try:
                db_pedido = await crud_pedido.get(db, pedido_id)
                if not db_pedido:
                    return None, await self.estado.alertar(f"Pedido {_id_curto(pedido_id)} não encontrado.", "error")
                if db_pedido.status in STATUS_FINAIS:
                    return None, await self.estado.alertar(
                        f"Não é possível adicionar itens a um pedido {db_pedido.status.value.lower()}.", "error"
                    )

                crud_item_pedido.create_multi(db, pedido_id=pedido_id, itens_in=itens)
                campos: Dict[str, Any] = {"valor_total": Pedido.valor_total + _total_itens(itens)}
                if db_pedido.status in (StatusPedido.PENDENTE, StatusPedido.EM_PREPARO):
                    campos["status"] = StatusPedido.PENDENTE
                    campos["ultima_mudanca_status"] = agora
                    campos.update(calcular_progresso(StatusPedido.PENDENTE, self.config, agora).como_campos())
                await db.flush()
                await crud_pedido.update(db, id=pedido_id, campos=campos)
                await db.commit()
                snapshot = await self._reler(db, pedido_id)
            except Exception as e:
                await db.rollback()
                logger.error(f"Erro ao adicionar itens ao pedido {pedido_id}: {e}")
                return None, await self.estado.alertar(f"Falha ao adicionar itens: {e}", "error")

        await self.estado.publicar_pedido(snapshot)
        mensagem = await self.estado.alertar(
            f"{len(itens)} item(ns) adicionado(s) ao pedido {_id_curto(pedido_id)}.", "success"
        )
        return snapshot, mensagem
