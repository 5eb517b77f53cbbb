"""007: create bet_audit_log and bet_events tables

Revision ID: 007
Revises: 006
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE bet_audit_log (
            id          BIGSERIAL       PRIMARY KEY,
            bet_id      VARCHAR(64)     NOT NULL REFERENCES bets (id),
            actor_id    VARCHAR(64)     NOT NULL,
            action      VARCHAR(30)     NOT NULL,
            reason      VARCHAR(1000)   NOT NULL DEFAULT '',
            detail      JSONB           NOT NULL DEFAULT '{}',
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("CREATE INDEX idx_bet_audit_bet ON bet_audit_log (bet_id, id);")
    op.execute("COMMENT ON TABLE bet_audit_log IS 'Privileged actions; append-only';")
    op.execute("""
        CREATE TABLE bet_events (
            id              BIGSERIAL       PRIMARY KEY,
            bet_id          VARCHAR(64)     NOT NULL,
            event_type      VARCHAR(30)     NOT NULL,
            user_id         VARCHAR(64),
            payload         JSONB           NOT NULL DEFAULT '{}',
            occurred_at     TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            dispatched_at   TIMESTAMPTZ
        );
    """)
    op.execute("""
        CREATE INDEX idx_bet_events_pending
        ON bet_events (id)
        WHERE dispatched_at IS NULL;
    """)
    op.execute("COMMENT ON TABLE bet_events IS 'Transactional outbox for the notification dispatcher';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bet_events CASCADE;")
    op.execute("DROP TABLE IF EXISTS bet_audit_log CASCADE;")
