"""006: create offers and acceptances tables

Revision ID: 006
Revises: 005
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE offers (
            id                  VARCHAR(64)     PRIMARY KEY,
            bet_id              VARCHAR(64)     NOT NULL REFERENCES bets (id),
            creator_id          VARCHAR(64)     NOT NULL,
            prediction          VARCHAR(20)     NOT NULL,
            stake_amount        NUMERIC(20, 8)  NOT NULL,
            requested_odds      NUMERIC(12, 4)  NOT NULL,
            remaining_amount    NUMERIC(20, 8)  NOT NULL,
            status              VARCHAR(20)     NOT NULL DEFAULT 'open',
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_offers_prediction CHECK (prediction IN ('contestant1', 'contestant2')),
            CONSTRAINT ck_offers_status CHECK (
                status IN ('open', 'partially_filled', 'filled', 'cancelled')
            ),
            CONSTRAINT ck_offers_odds_gt_1 CHECK (requested_odds > 1),
            CONSTRAINT ck_offers_remaining CHECK (
                remaining_amount >= 0 AND remaining_amount <= stake_amount
            )
        );
    """)
    op.execute("CREATE INDEX idx_offers_bet ON offers (bet_id, status);")
    op.execute("""
        CREATE TABLE acceptances (
            id                  VARCHAR(64)     PRIMARY KEY,
            bet_id              VARCHAR(64)     NOT NULL REFERENCES bets (id),
            offer_id            VARCHAR(64)     NOT NULL REFERENCES offers (id),
            creator_id          VARCHAR(64)     NOT NULL,
            acceptor_id         VARCHAR(64)     NOT NULL,
            creator_side        VARCHAR(20)     NOT NULL,
            amount              NUMERIC(20, 8)  NOT NULL,
            counter_amount      NUMERIC(20, 8)  NOT NULL,
            requested_odds      NUMERIC(12, 4)  NOT NULL,
            creator_payout      NUMERIC(20, 8),
            acceptor_payout     NUMERIC(20, 8),
            creator_claimed     BOOLEAN         NOT NULL DEFAULT FALSE,
            acceptor_claimed    BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_acceptances_no_self_match CHECK (creator_id <> acceptor_id),
            CONSTRAINT ck_acceptances_amounts_gt_0 CHECK (amount > 0 AND counter_amount > 0)
        );
    """)
    op.execute("CREATE INDEX idx_acceptances_bet ON acceptances (bet_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS acceptances CASCADE;")
    op.execute("DROP TABLE IF EXISTS offers CASCADE;")
