"""005: create participations table

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE participations (
            id          VARCHAR(64)     PRIMARY KEY,
            bet_id      VARCHAR(64)     NOT NULL REFERENCES bets (id),
            user_id     VARCHAR(64)     NOT NULL,
            prediction  VARCHAR(20)     NOT NULL,
            amount      NUMERIC(20, 8)  NOT NULL,
            payout      NUMERIC(20, 8),
            claimed     BOOLEAN         NOT NULL DEFAULT FALSE,
            claimed_at  TIMESTAMPTZ,
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_participations_bet_user UNIQUE (bet_id, user_id),
            CONSTRAINT ck_participations_prediction CHECK (
                prediction IN ('contestant1', 'contestant2')
            ),
            CONSTRAINT ck_participations_amount_gt_0 CHECK (amount > 0),
            CONSTRAINT ck_participations_payout_gte_0 CHECK (payout IS NULL OR payout >= 0)
        );
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS participations CASCADE;")
