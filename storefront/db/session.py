from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from storefront.core.config import Settings

class Base(DeclarativeBase): pass

def make_engine(settings: Settings, poolclass=None) -> Engine:
    dsn = settings.POSTGRES_DSN
    if dsn == 'sqlite://' or (dsn.startswith('sqlite') and ':memory:' in dsn):
        # one shared connection so every session sees the same in-memory db
        return create_engine(dsn, connect_args={'check_same_thread': False}, poolclass=StaticPool)
    if poolclass is not None:
        return create_engine(dsn, poolclass=poolclass)
    return create_engine(dsn, pool_pre_ping=True)

def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
