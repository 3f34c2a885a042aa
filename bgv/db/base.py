from sqlalchemy import MetaData
from sqlalchemy.orm import declarative_base

# Stable constraint names so alembic autogenerate diffs stay clean across backends
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

Base = declarative_base(metadata=MetaData(naming_convention=NAMING_CONVENTION))

# Models live in bgv.db.models and are imported by init_db()/alembic env
