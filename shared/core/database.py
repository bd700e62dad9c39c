from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from shared.core.config import RENT_DATABASE_URL

Base = declarative_base()

POOL_SIZE = 2
MAX_OVERFLOW = 2

if RENT_DATABASE_URL.startswith("sqlite"):
    rent_engine = create_engine(
        RENT_DATABASE_URL, connect_args={"check_same_thread": False}
    )
else:
    rent_engine = create_engine(
        RENT_DATABASE_URL,
        pool_pre_ping=True,
        pool_recycle=300,
        pool_size=POOL_SIZE,          # max idle connections
        max_overflow=MAX_OVERFLOW,      # max temporary extra connections
        pool_timeout=30       # wait time before failing
    )

RentSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=rent_engine)


# Dependency


def get_rent_db():
    db = RentSessionLocal()
    try:
        yield db
    finally:
        db.close()
