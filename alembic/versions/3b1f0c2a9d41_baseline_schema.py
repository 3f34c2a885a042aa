"""baseline_schema

Revision ID: 3b1f0c2a9d41
Revises: 
Create Date: 2026-10-19 10:12:44.118302

Production-safe migration: only creates tables that do not exist yet, so it can
be stamped onto a database that was bootstrapped with init_db().
"""
from typing import Sequence, Union

from alembic import op
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '3b1f0c2a9d41'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Parents before children
TABLES = (
    'users',
    'companies',
    'verifier_assignments',
    'form_questions',
    'applications',
    'application_documents',
    'application_question_answers',
    'field_reviews',
    'file_reviews',
    'application_reviews',
    'verification_history',
)


def table_exists(table_name: str) -> bool:
    """Check if a table exists in the database."""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def upgrade() -> None:
    """Create every missing table with its indexes and constraints."""
    from bgv.db import models  # noqa: F401
    from bgv.db.base import Base

    bind = op.get_bind()
    for name in TABLES:
        if not table_exists(name):
            Base.metadata.tables[name].create(bind)


def downgrade() -> None:
    for name in reversed(TABLES):
        if table_exists(name):
            op.drop_table(name)
