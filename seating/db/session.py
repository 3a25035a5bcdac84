
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from seating.core.config import settings


def make_engine(url: str):
    # SQLite connections are handed across threadpool workers
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": 30}
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


engine = make_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
