"""Database configuration and initialization."""
import logging

from sqlalchemy import BigInteger, Integer, create_engine, inspect
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Create SQLAlchemy base
Base = declarative_base()

# SQLite only autoincrements INTEGER primary keys
IdType = BigInteger().with_variant(Integer(), 'sqlite')

# Global session and engine
engine = None
db_session = None


def _engine_options(database_uri, echo):
    """Build create_engine() kwargs for the configured backend."""
    if database_uri.startswith('sqlite'):
        # One shared connection so an in-memory database survives across sessions
        return {
            'echo': echo,
            'connect_args': {'check_same_thread': False},
            'poolclass': StaticPool,
        }
    return {
        'echo': echo,
        'pool_pre_ping': True,  # Enable connection health checks
        'pool_size': 10,
        'max_overflow': 20,
    }


def init_db(app):
    """Initialize database connection."""
    global engine, db_session

    database_uri = app.config['SQLALCHEMY_DATABASE_URI']
    engine = create_engine(
        database_uri,
        **_engine_options(database_uri, app.config.get('SQLALCHEMY_ECHO', False))
    )

    db_session = scoped_session(
        sessionmaker(autocommit=False, autoflush=False, bind=engine)
    )

    Base.query = db_session.query_property()

    # Register teardown
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close database session and rollback on error."""
        if exception:
            db_session.rollback()
        db_session.remove()


def get_session():
    """Get database session."""
    return db_session


def verify_schema():
    """
    Return the names of mapped tables that are missing from the database.

    Run once at startup instead of probing for tables on every request.
    """
    import offerdesk.models  # noqa: F401  (register mappers)

    existing = set(inspect(engine).get_table_names())
    return sorted(name for name in Base.metadata.tables if name not in existing)


def create_schema():
    """Create all tables that do not exist yet."""
    import offerdesk.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def drop_schema():
    """Drop all mapped tables."""
    import offerdesk.models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
