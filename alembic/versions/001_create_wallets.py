"""001: create wallets table

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE wallets (
            id              UUID        PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id         VARCHAR(64) NOT NULL,
            balance_eur     REAL        NOT NULL DEFAULT 0,
            balance_usd     REAL        NOT NULL DEFAULT 0,
            balance_rub     REAL        NOT NULL DEFAULT 0,
            version         BIGINT      NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_wallets_user_id        UNIQUE (user_id),
            CONSTRAINT ck_wallets_eur_gte_0      CHECK (balance_eur >= 0),
            CONSTRAINT ck_wallets_usd_gte_0      CHECK (balance_usd >= 0),
            CONSTRAINT ck_wallets_rub_gte_0      CHECK (balance_rub >= 0)
        );
    """)
    op.execute("COMMENT ON TABLE wallets IS 'One row per user: EUR/USD/RUB balances, single precision';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wallets CASCADE;")
