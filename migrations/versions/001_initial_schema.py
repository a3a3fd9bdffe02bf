"""Create users, categories and transactions tables

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17

Category names are unique per user. Transactions reference their category
with the default NO ACTION rule so a category in use cannot be removed, and cascade
away with their user.
"""
from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # users table
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id VARCHAR PRIMARY KEY,
            name VARCHAR(50) NOT NULL,
            email VARCHAR(255) NOT NULL UNIQUE,
            password_hash VARCHAR(255) NOT NULL,
            created_at TIMESTAMP WITH TIME ZONE DEFAULT now(),
            updated_at TIMESTAMP WITH TIME ZONE
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_users_email ON users(email)")

    # categories table
    op.execute("""
        CREATE TABLE IF NOT EXISTS categories (
            id VARCHAR PRIMARY KEY,
            user_id VARCHAR NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            name VARCHAR(50) NOT NULL,
            icon VARCHAR(10) NOT NULL DEFAULT '📦',
            color VARCHAR(7) NOT NULL DEFAULT '#B8B8B8',
            created_at TIMESTAMP WITH TIME ZONE DEFAULT now(),
            CONSTRAINT uq_categories_user_name UNIQUE (user_id, name)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_categories_user_id ON categories(user_id)")

    # transactions table
    op.execute("""
        CREATE TABLE IF NOT EXISTS transactions (
            id VARCHAR PRIMARY KEY,
            user_id VARCHAR NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            category_id VARCHAR NOT NULL REFERENCES categories(id),
            amount FLOAT NOT NULL,
            description VARCHAR(255),
            date TIMESTAMP WITH TIME ZONE NOT NULL,
            type VARCHAR(10) NOT NULL,
            is_recurring BOOLEAN NOT NULL DEFAULT false,
            recurrence VARCHAR(10),
            created_at TIMESTAMP WITH TIME ZONE DEFAULT now(),
            updated_at TIMESTAMP WITH TIME ZONE
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_transactions_user_id ON transactions(user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_transactions_category_id ON transactions(category_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_transactions_date ON transactions(date)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_transactions_user_date ON transactions(user_id, date)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_transactions_user_type ON transactions(user_id, type)")
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_transactions_user_category "
        "ON transactions(user_id, category_id)"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS transactions")
    op.execute("DROP TABLE IF EXISTS categories")
    op.execute("DROP TABLE IF EXISTS users")
