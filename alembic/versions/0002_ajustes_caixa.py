"""ajustes de caixa (suprimento e sangria)

Revision ID: 0002
Revises: 0001
Create Date: 2025-02-03 10:30:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0002"
down_revision: Union[str, None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "ajustes_caixa",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("data_criacao", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("data_atualizacao", sa.DateTime(timezone=True)),
        sa.Column("sessao_id", sa.Uuid(), sa.ForeignKey("sessoes_caixa.id"), nullable=False),
        sa.Column("tipo", sa.Enum("ENTRADA", "SAIDA", name="tipoajustecaixa"), nullable=False),
        sa.Column("valor", sa.Numeric(10, 2), nullable=False),
        sa.Column("motivo", sa.Text(), nullable=False),
        sa.Column("ajustado_em", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_ajustes_caixa_id", "ajustes_caixa", ["id"])
    op.create_index("ix_ajustes_caixa_sessao_id", "ajustes_caixa", ["sessao_id"])


def downgrade() -> None:
    op.drop_table("ajustes_caixa")
    sa.Enum(name="tipoajustecaixa").drop(op.get_bind(), checkfirst=True)
