from sqlmodel import SQLModel, create_engine, Session

from worklog import config

DATABASE_URL = config.database_url()

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=False, connect_args=connect_args)


def init_db(bind=None) -> None:
    """Create any missing tables."""
    import worklog.models  # noqa: F401  (registers the tables)

    SQLModel.metadata.create_all(bind or engine)


def get_session():
    with Session(engine) as session:
        yield session
