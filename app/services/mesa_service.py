# app/services/mesa_service.py
import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.logging import get_logger
from app.core.relogio import Relogio, agora_utc
from app.crud.crud_caixa import sessao_caixa as crud_sessao_caixa
from app.crud.crud_mesa import mesa as crud_mesa
from app.crud.crud_pedido import crud_pedido
from app.database import AsyncSessionLocal
from app.db.models.mesa import StatusMesa
from app.db.models.pedido import METODOS_CAIXA, MetodoPagamento, STATUS_FINAIS, StatusPedido
from app.schemas.mesa import MesaCreateSchemas, MesaSchemas, MesaUpdateSchemas
from app.schemas.pedido import DetalhesPagamentoSchemas, PedidoSchemas
from app.services.estado_service import EstadoService
from app.services.progresso import PROGRESSO_PARADO

logger = get_logger("mesas")


class MesaService:
    def __init__(
        self,
        estado: EstadoService,
        *,
        session_factory: async_sessionmaker = AsyncSessionLocal,
        relogio: Relogio = agora_utc,
    ):
        self.estado = estado
        self.session_factory = session_factory
        self.relogio = relogio

    async def fetch_mesa(self, mesa_id: uuid.UUID) -> Optional[MesaSchemas]:
        async with self.session_factory() as db:
            db_mesa = await crud_mesa.get(db, mesa_id)
            return MesaSchemas.model_validate(db_mesa) if db_mesa else None

    async def listar_mesas(self, *, status: Optional[StatusMesa] = None) -> List[MesaSchemas]:
        async with self.session_factory() as db:
            mesas = await crud_mesa.get_multi(db, limit=1000, status=status)
            return [MesaSchemas.model_validate(m) for m in mesas]

    async def create_mesa(self, mesa_in: MesaCreateSchemas) -> Tuple[Optional[MesaSchemas], Optional[str]]:
        nome = mesa_in.nome.strip()
        if not nome:
            return None, await self.estado.alertar("Informe o nome da mesa.", "error")
        async with self.session_factory() as db:
            try:
                if await crud_mesa.get_by_nome(db, nome=nome):
                    return None, await self.estado.alertar(f"Já existe uma mesa com o nome \"{nome}\".", "error")
                db_mesa = await crud_mesa.create(db, obj_in=mesa_in.model_copy(update={"nome": nome}))
                mesa_id = db_mesa.id
                await db.commit()
                snapshot = MesaSchemas.model_validate(await crud_mesa.get(db, mesa_id))
            except Exception as e:
                await db.rollback()
                logger.error(f"Erro ao criar mesa: {e}")
                return None, await self.estado.alertar(f"Falha ao criar mesa: {e}", "error")

        await self.estado.publicar_mesa(snapshot, "INSERT")
        return snapshot, await self.estado.alertar(f"Mesa \"{nome}\" criada!", "success")

    async def update_mesa(
        self, mesa_id: uuid.UUID, mesa_in: MesaUpdateSchemas
    ) -> Tuple[Optional[MesaSchemas], Optional[str]]:
        campos: Dict[str, Any] = mesa_in.model_dump(exclude_unset=True)
        async with self.session_factory() as db:
            try:
                db_mesa = await crud_mesa.get(db, mesa_id)
                if not db_mesa:
                    return None, await self.estado.alertar("Mesa não encontrada.", "error")

                if "nome" in campos:
                    campos["nome"] = (campos["nome"] or "").strip()
                    if not campos["nome"]:
                        return None, await self.estado.alertar("Informe o nome da mesa.", "error")
                    existente = await crud_mesa.get_by_nome(db, nome=campos["nome"])
                    if existente and existente.id != mesa_id:
                        return None, await self.estado.alertar(
                            f"Já existe uma mesa com o nome \"{campos['nome']}\".", "error"
                        )

                novo_status = campos.get("status", db_mesa.status)
                pedido_atual_id = campos.get("pedido_atual_id", db_mesa.pedido_atual_id)

                # Mesa só vai para limpeza depois que o pedido em andamento termina
                if novo_status == StatusMesa.LIMPEZA_PENDENTE and db_mesa.pedido_atual_id:
                    pedido = await crud_pedido.get(db, db_mesa.pedido_atual_id)
                    if pedido and pedido.status not in STATUS_FINAIS:
                        return None, await self.estado.alertar(
                            f"A mesa \"{db_mesa.nome}\" não pode ser marcada para limpeza. "
                            f"O pedido atual ({pedido.status.value}) precisa ser finalizado.",
                            "error",
                        )

                if novo_status == StatusMesa.OCUPADA and pedido_atual_id:
                    pedido = await crud_pedido.get(db, pedido_atual_id)
                    if not pedido or pedido.status in STATUS_FINAIS:
                        return None, await self.estado.alertar(
                            "Mesa ocupada deve apontar para um pedido em andamento.", "error"
                        )
                elif novo_status != StatusMesa.OCUPADA and "status" in campos:
                    campos["pedido_atual_id"] = None

                if campos:
                    await crud_mesa.update(db, id=mesa_id, campos=campos)
                    await db.commit()
                snapshot = MesaSchemas.model_validate(await crud_mesa.get(db, mesa_id))
            except Exception as e:
                await db.rollback()
                logger.error(f"Erro ao atualizar mesa {mesa_id}: {e}")
                return None, await self.estado.alertar(f"Falha ao atualizar mesa: {e}", "error")

        await self.estado.publicar_mesa(snapshot)
        return snapshot, await self.estado.alertar(f"Mesa \"{snapshot.nome}\" atualizada!", "success")

    async def remove_mesa(self, mesa_id: uuid.UUID) -> Tuple[Optional[MesaSchemas], Optional[str]]:
        async with self.session_factory() as db:
            try:
                db_mesa = await crud_mesa.get(db, mesa_id)
                if not db_mesa:
                    return None, await self.estado.alertar("Mesa não encontrada.", "error")
                if db_mesa.status == StatusMesa.OCUPADA and db_mesa.pedido_atual_id:
                    return None, await self.estado.alertar(
                        f"A mesa \"{db_mesa.nome}\" está ocupada com um pedido em andamento e não pode ser removida.",
                        "error",
                    )
                snapshot = MesaSchemas.model_validate(db_mesa)
                await crud_mesa.remove(db, id=mesa_id)
                await db.commit()
            except Exception as e:
                await db.rollback()
                logger.error(f"Erro ao remover mesa {mesa_id}: {e}")
                return None, await self.estado.alertar(f"Falha ao remover mesa: {e}", "error")

        await self.estado.remover_mesa(snapshot)
        return snapshot, await self.estado.alertar(f"Mesa \"{snapshot.nome}\" removida.", "success")

    async def fechar_conta_mesa(
        self, pedido_id: uuid.UUID, pagamento: DetalhesPagamentoSchemas
    ) -> Tuple[Optional[PedidoSchemas], Optional[str]]:
        """
        Fecha a conta: pedido vai para entregue com o pagamento registrado e
        a mesa (se houver) vai para limpeza pendente, na mesma transação.
        Pedido já finalizado é devolvido sem alteração.
        """
        agora = self.relogio()
        mesa_snapshot = None
        async with self.session_factory() as db:
            try:
                db_pedido = await crud_pedido.get(db, pedido_id)
                if not db_pedido:
                    return None, await self.estado.alertar("Pedido não encontrado.", "error")
                if db_pedido.status in STATUS_FINAIS:
                    snapshot = PedidoSchemas.model_validate(db_pedido)
                    return snapshot, await self.estado.alertar(
                        f"O pedido já está {db_pedido.status.value.lower()}.", "info"
                    )

                metodo = pagamento.metodo_pagamento
                total: Decimal = db_pedido.valor_total
                if metodo == MetodoPagamento.DINHEIRO:
                    valor_pago = pagamento.valor_pago
                    troco = valor_pago - total if valor_pago is not None and valor_pago >= total else Decimal("0")
                else:
                    valor_pago = total
                    troco = Decimal("0")

                campos: Dict[str, Any] = {
                    "status": StatusPedido.ENTREGUE,
                    "metodo_pagamento": metodo,
                    "valor_pago": valor_pago,
                    "troco": troco,
                    "ultima_mudanca_status": agora,
                    **PROGRESSO_PARADO.como_campos(),
                }
                aviso_caixa = None
                if metodo in METODOS_CAIXA:
                    sessao = await crud_sessao_caixa.get_aberta(db)
                    if sessao:
                        campos["sessao_caixa_id"] = sessao.id
                    else:
                        aviso_caixa = "Nenhum caixa aberto: pagamento registrado sem vínculo com sessão de caixa."
                await crud_pedido.update(db, id=pedido_id, campos=campos)

                mesa_id = db_pedido.mesa_id
                if mesa_id:
                    db_mesa = await crud_mesa.get(db, mesa_id)
                    if db_mesa:
                        campos_mesa: Dict[str, Any] = {"status": StatusMesa.LIMPEZA_PENDENTE}
                        if db_mesa.pedido_atual_id == pedido_id:
                            campos_mesa["pedido_atual_id"] = None
                        await crud_mesa.update(db, id=mesa_id, campos=campos_mesa)
                    else:
                        mesa_id = None

                await db.commit()
                snapshot = PedidoSchemas.model_validate(await crud_pedido.get(db, pedido_id))
                if mesa_id:
                    mesa_snapshot = MesaSchemas.model_validate(await crud_mesa.get(db, mesa_id))
            except Exception as e:
                await db.rollback()
                logger.error(f"Erro ao fechar conta do pedido {pedido_id}: {e}")
                return None, await self.estado.alertar(f"Falha ao fechar conta: {e}", "error")

        await self.estado.publicar_pedido(snapshot)
        if mesa_snapshot:
            await self.estado.publicar_mesa(mesa_snapshot)
        if aviso_caixa:
            await self.estado.alertar(aviso_caixa, "info")
        mensagem = await self.estado.alertar(f"Conta do pedido {str(pedido_id)[:6]} fechada!", "success")
        return snapshot, mensagem
