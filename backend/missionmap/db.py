import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from missionmap import settings
from missionmap.models.base import Base

logger = logging.getLogger(__name__)


def make_engine(url: str = settings.DATABASE_URL):
    # SQLite はリクエスト毎のスレッドから同じ接続を使う
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


engine = make_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None) -> None:
    """missions / rules / geometries テーブルを作成（既存なら何もしない）"""
    import missionmap.models.mission  # noqa: F401
    import missionmap.models.rule  # noqa: F401
    import missionmap.models.geometry  # noqa: F401
    target = bind if bind is not None else engine
    Base.metadata.create_all(bind=target)
    logger.info("database schema ready (%s)", target.url.render_as_string(hide_password=True))


def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
