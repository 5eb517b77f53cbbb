"""004: create bets table

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE bets (
            id                  VARCHAR(64)     PRIMARY KEY,
            market_type         VARCHAR(20)     NOT NULL,
            tournament_id       VARCHAR(64)     NOT NULL,
            tournament_name     VARCHAR(200)    NOT NULL DEFAULT '',
            event_id            VARCHAR(64)     NOT NULL,
            event_name          VARCHAR(200)    NOT NULL DEFAULT '',
            phase_id            VARCHAR(64)     NOT NULL,
            phase_name          VARCHAR(200)    NOT NULL DEFAULT '',
            match_id            VARCHAR(64)     NOT NULL,
            match_name          VARCHAR(200)    NOT NULL DEFAULT '',
            contestant1_id      VARCHAR(64),
            contestant1_name    VARCHAR(200)    NOT NULL,
            contestant2_id      VARCHAR(64),
            contestant2_name    VARCHAR(200)    NOT NULL,
            creator_id          VARCHAR(64)     NOT NULL,
            minimum_bet         NUMERIC(20, 8)  NOT NULL,
            maximum_bet         NUMERIC(20, 8)  NOT NULL,
            status              VARCHAR(20)     NOT NULL DEFAULT 'open',
            winner              VARCHAR(20),
            contestant1_pool    NUMERIC(20, 8)  NOT NULL DEFAULT 0,
            contestant2_pool    NUMERIC(20, 8)  NOT NULL DEFAULT 0,
            total_pool          NUMERIC(20, 8)  NOT NULL DEFAULT 0,
            platform_fee        NUMERIC(20, 8)  NOT NULL DEFAULT 0,
            disputed            BOOLEAN         NOT NULL DEFAULT FALSE,
            dispute_reason      VARCHAR(1000),
            version             BIGINT          NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            started_at          TIMESTAMPTZ,
            resolved_at         TIMESTAMPTZ,
            cancelled_at        TIMESTAMPTZ,
            cancelled_by        VARCHAR(64),
            CONSTRAINT ck_bets_market_type CHECK (market_type IN ('pool', 'order_book')),
            CONSTRAINT ck_bets_status CHECK (
                status IN ('open', 'in_progress', 'completed', 'cancelled')
            ),
            CONSTRAINT ck_bets_winner CHECK (
                winner IS NULL OR winner IN ('contestant1', 'contestant2', 'void')
            ),
            CONSTRAINT ck_bets_limits CHECK (minimum_bet > 0 AND maximum_bet > minimum_bet),
            CONSTRAINT ck_bets_pool_sum CHECK (
                total_pool = contestant1_pool + contestant2_pool
            ),
            CONSTRAINT ck_bets_pools_gte_0 CHECK (
                contestant1_pool >= 0 AND contestant2_pool >= 0 AND platform_fee >= 0
            )
        );
    """)
    op.execute("""
        CREATE UNIQUE INDEX uq_bets_live_match
        ON bets (match_id, market_type)
        WHERE status <> 'cancelled';
    """)
    op.execute("CREATE INDEX idx_bets_status ON bets (status, created_at DESC);")
    op.execute("CREATE INDEX idx_bets_tournament ON bets (tournament_id, created_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_bets_updated_at
            BEFORE UPDATE ON bets
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bets CASCADE;")
