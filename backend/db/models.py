"""
SQLAlchemy models for the embedded-database waitlist backend.

Tables:
- waitlist_entries: one row per signup, in insertion order
"""
from pathlib import Path
from sqlalchemy import create_engine, Column, BigInteger, Integer, String, Text
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


class WaitlistRecord(Base):
    """
    Stored form of a waitlist entry.
    row_id keeps the collection order; id is the entry's own millisecond id.
    """
    __tablename__ = "waitlist_entries"

    row_id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(320), nullable=False, unique=True, index=True)
    timestamp = Column(String(40), nullable=False)
    id = Column(BigInteger, nullable=False)
    ip = Column(String(64), nullable=True)
    user_agent = Column(Text, nullable=True)

    def __repr__(self):
        return f"<WaitlistRecord {self.email}>"


def get_engine(url: str):
    """Create SQLAlchemy engine."""
    if url.startswith("sqlite:///"):
        Path(url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, echo=False, pool_pre_ping=True)


def get_session_factory(engine):
    return sessionmaker(bind=engine)


def init_db(engine) -> None:
    """Create all tables."""
    Base.metadata.create_all(engine)
