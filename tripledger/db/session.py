from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from tripledger.config import settings
from tripledger.models.booking import Base
import tripledger.models.edit_request  # registers the edit_requests table

connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def init_db(bind=None):
    Base.metadata.create_all(bind=bind or engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
