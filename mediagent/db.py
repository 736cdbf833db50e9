from datetime import datetime

from sqlalchemy import (
    create_engine,
    Column,
    String,
    Integer,
    DateTime,
    JSON,
    UniqueConstraint,
)
from sqlalchemy.orm import sessionmaker, declarative_base

# ---------- DB setup ----------

Base = declarative_base()


def make_session_factory(database_url: str):
    """
    Build an engine + session factory for `database_url`.
    Tables are created on first use.
    """
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False  # needed for SQLite + FastAPI

    engine = create_engine(database_url, connect_args=connect_args)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


# ---------- Records ----------

class StoredRecord(Base):
    """
    One stored document (patient, report, recording, agent, workflow).
    The camelCase JSON body lives in `payload`.
    """
    __tablename__ = "records"
    __table_args__ = (UniqueConstraint("collection", "record_id", name="uq_collection_record"),)

    id = Column(Integer, primary_key=True, index=True)
    collection = Column(String, index=True, nullable=False)   # e.g. "patients"
    record_id = Column(String, index=True, nullable=False)

    payload = Column(JSON, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
