"""tabelas iniciais: mesas, sessoes de caixa, pedidos e itens

Revision ID: 0001
Revises:
Create Date: 2025-01-10 19:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _colunas_base():
    return [
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("data_criacao", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("data_atualizacao", sa.DateTime(timezone=True)),
    ]


def upgrade() -> None:
    op.create_table(
        "mesas",
        *_colunas_base(),
        sa.Column("nome", sa.String(), nullable=False),
        sa.Column("capacidade", sa.Integer(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("DISPONIVEL", "OCUPADA", "RESERVADA", "LIMPEZA_PENDENTE", name="statusmesa"),
            nullable=False,
        ),
        sa.Column("pedido_atual_id", sa.Uuid(), nullable=True),
        sa.Column("detalhes_reserva", sa.JSON(), nullable=True),
    )
    op.create_index("ix_mesas_id", "mesas", ["id"])
    op.create_index("ix_mesas_nome", "mesas", ["nome"], unique=True)

    op.create_table(
        "sessoes_caixa",
        *_colunas_base(),
        sa.Column("aberta_em", sa.DateTime(timezone=True), nullable=False),
        sa.Column("fechada_em", sa.DateTime(timezone=True), nullable=True),
        sa.Column("saldo_abertura", sa.Numeric(10, 2), nullable=False),
        sa.Column("vendas_calculadas", sa.Numeric(10, 2), nullable=True),
        sa.Column("esperado_em_caixa", sa.Numeric(10, 2), nullable=True),
        sa.Column("saldo_fechamento_informado", sa.Numeric(10, 2), nullable=True),
        sa.Column("diferenca", sa.Numeric(10, 2), nullable=True),
        sa.Column("observacoes_abertura", sa.Text(), nullable=True),
        sa.Column("observacoes_fechamento", sa.Text(), nullable=True),
        sa.Column("status", sa.Enum("ABERTA", "FECHADA", name="statussessaocaixa"), nullable=False),
    )
    op.create_index("ix_sessoes_caixa_id", "sessoes_caixa", ["id"])
    # No máximo uma sessão aberta por vez
    op.create_index(
        "uq_sessoes_caixa_uma_aberta",
        "sessoes_caixa",
        ["status"],
        unique=True,
        postgresql_where=sa.text("status = 'ABERTA'"),
        sqlite_where=sa.text("status = 'ABERTA'"),
    )

    op.create_table(
        "pedidos",
        *_colunas_base(),
        sa.Column("cliente_id", sa.Uuid(), nullable=True),
        sa.Column("nome_cliente", sa.String(), nullable=False),
        sa.Column("telefone_cliente", sa.String(), nullable=True),
        sa.Column("endereco_cliente", sa.String(), nullable=True),
        sa.Column("referencia_endereco", sa.String(), nullable=True),
        sa.Column("observacoes", sa.Text(), nullable=True),
        sa.Column("valor_total", sa.Numeric(10, 2), nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "PENDENTE", "EM_PREPARO", "PRONTO_PARA_RETIRADA", "SAIU_PARA_ENTREGA", "ENTREGUE", "CANCELADO",
                name="statuspedido",
            ),
            nullable=False,
        ),
        sa.Column("tipo_pedido", sa.Enum("MESA", "DELIVERY", "BALCAO", name="tipopedido"), nullable=False),
        sa.Column("mesa_id", sa.Uuid(), sa.ForeignKey("mesas.id"), nullable=True),
        sa.Column(
            "metodo_pagamento",
            sa.Enum("DINHEIRO", "CARTAO_DEBITO", "CARTAO_CREDITO", "PIX", "MULTIPLO", name="metodopagamento"),
            nullable=True,
        ),
        sa.Column("valor_pago", sa.Numeric(10, 2), nullable=True),
        sa.Column("troco", sa.Numeric(10, 2), nullable=True),
        sa.Column("sessao_caixa_id", sa.Uuid(), sa.ForeignKey("sessoes_caixa.id"), nullable=True),
        sa.Column("hora_pedido", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ultima_mudanca_status", sa.DateTime(timezone=True), nullable=False),
        sa.Column("proxima_transicao_automatica", sa.DateTime(timezone=True), nullable=True),
        sa.Column("auto_progresso", sa.Boolean(), nullable=False),
        sa.Column("progresso_atual", sa.Integer(), nullable=False),
    )
    op.create_index("ix_pedidos_id", "pedidos", ["id"])
    op.create_index("ix_pedidos_status", "pedidos", ["status"])
    op.create_index("ix_pedidos_sessao_caixa_id", "pedidos", ["sessao_caixa_id"])

    op.create_table(
        "itens_pedido",
        *_colunas_base(),
        sa.Column("pedido_id", sa.Uuid(), sa.ForeignKey("pedidos.id"), nullable=False),
        sa.Column("item_cardapio_id", sa.Uuid(), nullable=False),
        sa.Column("nome", sa.String(), nullable=False),
        sa.Column("quantidade", sa.Integer(), nullable=False),
        sa.Column("preco", sa.Numeric(10, 2), nullable=False),
        sa.Column("tamanho_id", sa.String(), nullable=True),
        sa.Column("borda_id", sa.String(), nullable=True),
        sa.Column("meio_a_meio", sa.Boolean(), nullable=False),
        sa.Column("primeiro_sabor", sa.JSON(), nullable=True),
        sa.Column("segundo_sabor", sa.JSON(), nullable=True),
    )
    op.create_index("ix_itens_pedido_id", "itens_pedido", ["id"])
    op.create_index("ix_itens_pedido_pedido_id", "itens_pedido", ["pedido_id"])


def downgrade() -> None:
    op.drop_table("itens_pedido")
    op.drop_table("pedidos")
    op.drop_index("uq_sessoes_caixa_uma_aberta", table_name="sessoes_caixa")
    op.drop_table("sessoes_caixa")
    op.drop_table("mesas")
    sa.Enum(name="metodopagamento").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="tipopedido").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="statuspedido").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="statussessaocaixa").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="statusmesa").drop(op.get_bind(), checkfirst=True)
