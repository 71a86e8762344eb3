from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool

from storefront.core.config import Settings
from storefront.db.session import Base, make_engine
import storefront.db.models  # noqa

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

settings = Settings.from_env()

# shares the database with other services, so keep a private version table
VERSION_TABLE = "alembic_version_order"


def _configure(**kwargs):
    context.configure(
        target_metadata=Base.metadata,
        version_table=VERSION_TABLE,
        compare_type=True,
        render_as_batch=settings.POSTGRES_DSN.startswith("sqlite"),
        **kwargs,
    )


def run_migrations_offline():
    _configure(url=settings.POSTGRES_DSN, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    engine = make_engine(settings, poolclass=pool.NullPool)
    with engine.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()
    engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
