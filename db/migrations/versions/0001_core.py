from __future__ import annotations

from alembic import op

revision = "0001_core"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS users (
            id UUID PRIMARY KEY,
            email VARCHAR(320) UNIQUE NOT NULL,
            hashed_password VARCHAR(1024) NOT NULL,
            is_active BOOLEAN NOT NULL DEFAULT TRUE,
            is_superuser BOOLEAN NOT NULL DEFAULT FALSE,
            is_verified BOOLEAN NOT NULL DEFAULT FALSE,
            name VARCHAR(120)
        );
        """
    )
    op.execute("CREATE INDEX IF NOT EXISTS ix_users_email ON users (email);")

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS transactions (
            id UUID PRIMARY KEY,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            type VARCHAR(16) NOT NULL CHECK (type IN ('income', 'expense')),
            amount NUMERIC(18,2) NOT NULL CHECK (amount >= 0),
            category VARCHAR(32) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            date TIMESTAMPTZ NOT NULL,
            tags JSON NOT NULL DEFAULT '[]',
            created_at TIMESTAMPTZ NOT NULL
        );
        """
    )
    op.execute("CREATE INDEX IF NOT EXISTS ix_transactions_user_date ON transactions (user_id, date);")

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS budgets (
            id UUID PRIMARY KEY,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            name VARCHAR(200) NOT NULL,
            category VARCHAR(32) NOT NULL,
            amount NUMERIC(18,2) NOT NULL CHECK (amount >= 0),
            period VARCHAR(16) NOT NULL DEFAULT 'monthly' CHECK (period IN ('weekly', 'monthly', 'yearly')),
            start_date TIMESTAMPTZ NOT NULL,
            end_date TIMESTAMPTZ NOT NULL,
            alerts_enabled BOOLEAN NOT NULL DEFAULT TRUE,
            alert_threshold DOUBLE PRECISION NOT NULL DEFAULT 80,
            created_at TIMESTAMPTZ NOT NULL,
            CHECK (end_date >= start_date)
        );
        """
    )
    op.execute("CREATE INDEX IF NOT EXISTS ix_budgets_user_category ON budgets (user_id, category);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS budgets;")
    op.execute("DROP TABLE IF EXISTS transactions;")
    op.execute("DROP TABLE IF EXISTS users;")
