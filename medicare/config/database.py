# medicare/config/database.py

from sqlalchemy import create_engine, event, pool
from sqlalchemy.orm import sessionmaker, declarative_base
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    database_url: str = "sqlite:///./medicare.db"

    api_version: str = "1.0.0"
    api_title: str = "MediCare Appointment Booking API"
    api_host: str = "0.0.0.0"
    api_port: int = 5000
    allowed_origins: str = "http://localhost:5173,http://localhost:3000"
    debug: bool = True
    log_level: str = "info"

    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    cookie_secure: bool = False

    khalti_secret_key: str = ""
    khalti_api_url: str = "https://a.khalti.com/api/v2"
    frontend_url: str = "http://localhost:5173"
    payment_gateway_timeout: float = 15.0

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra='ignore'
    )

    @property
    def origins(self) -> List[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

settings = Settings()


def build_engine(database_url: str):
    if database_url.startswith("sqlite"):
        # In-memory SQLite must share one connection or every session sees an empty database
        in_memory = database_url in ("sqlite://", "sqlite:///:memory:")
        sqlite_engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=pool.StaticPool if in_memory else None,
            echo=False
        )

        @event.listens_for(sqlite_engine, "connect")
        def enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return sqlite_engine

    return create_engine(
        database_url,
        poolclass=pool.QueuePool,
        pool_size=20,
        max_overflow=40,
        pool_pre_ping=True,
        pool_recycle=3600,
        echo=False
    )


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
