from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from dotenv import load_dotenv
import logging
import os

load_dotenv()

logger = logging.getLogger(__name__)

Base = declarative_base()

DB_TIMEZONE = os.getenv("DB_TIMEZONE", "America/Sao_Paulo")

# Colunas opcionais de perfil que podem faltar em bancos antigos
OPTIONAL_PROFILE_COLUMNS = [
    "sector",
    "bio",
    "banner_url",
    "instagram_url",
    "linkedin_url",
    "facebook_url",
    "youtube_url",
    "twitter_url",
]


def build_database_url() -> str:
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url

    # Configuração de conexão PostgreSQL
    db_user = os.getenv("DB_USER")
    db_password = os.getenv("DB_PASSWORD")
    db_host = os.getenv("DB_HOST")
    db_port = os.getenv("DB_PORT")
    db_name = os.getenv("DB_NAME")

    if not all([db_user, db_password, db_host, db_port, db_name]):
        raise ValueError("Database configuration is incomplete. Set DATABASE_URL or DB_USER, DB_PASSWORD, DB_HOST, DB_PORT, DB_NAME environment variables.")

    return f"postgresql+psycopg2://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"


DATABASE_URL = build_database_url()

if DATABASE_URL.startswith("sqlite"):
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    engine = create_engine(
        DATABASE_URL,
        pool_pre_ping=True,
        pool_size=20,
        max_overflow=10
    )

    @event.listens_for(engine, "connect")
    def set_timezone(dbapi_connection, connection_record):
        """Force the session timezone for every connection."""
        cursor = dbapi_connection.cursor()
        cursor.execute(f"SET TIME ZONE '{DB_TIMEZONE}'")
        cursor.close()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Dependency
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_profile_columns(bind: Engine = None) -> list[str]:
    """
    Adds any optional profile column missing from the live `profiles` table.

    Returns the names of the columns that were added. Failures are logged and
    never raised, so startup continues with whatever columns exist.
    """
    bind = bind or engine
    added = []
    try:
        existing = {column["name"] for column in inspect(bind).get_columns("profiles")}
    except SQLAlchemyError as e:
        logger.error("Erro ao verificar colunas de 'profiles': %s", e)
        return added

    for column_name in OPTIONAL_PROFILE_COLUMNS:
        if column_name in existing:
            logger.debug("Coluna '%s' já existe na tabela 'profiles'.", column_name)
            continue
        try:
            with bind.begin() as connection:
                connection.execute(text(f"ALTER TABLE profiles ADD COLUMN {column_name} TEXT"))
            added.append(column_name)
            logger.info("Coluna '%s' adicionada à tabela 'profiles'.", column_name)
        except SQLAlchemyError as e:
            logger.error("Erro ao adicionar coluna '%s': %s", column_name, e)
    return added


# Function to initialize the database (create tables)
def init_db(bind: Engine = None):
    # Import all models here to ensure they are registered with Base.metadata
    import models.user
    import models.article
    import models.social
    import models.notification
    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    ensure_profile_columns(bind)
