import logging
from dataclasses import dataclass
from typing import Iterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from . import config
from .errors import StoreUnavailable
from .local_store import LocalRecordStore
from .store import RecordStore, SqlRecordStore

logger = logging.getLogger(__name__)


def create_db_engine(url: str) -> Engine:
    connect_args = {}
    kwargs = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(url, echo=config.get_sql_echo(), connect_args=connect_args, **kwargs)


def init_db(engine: Engine):
    SQLModel.metadata.create_all(engine)


def is_available(engine: Engine) -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.warning("Database unavailable: %s", e)
        return False


@dataclass
class StoreProvider:
    """
    활성 저장소 선택 결과

    backend == "sql"   : 요청마다 Session을 열어 SqlRecordStore 제공
    backend == "local" : 프로세스 단위 LocalRecordStore 하나를 공유
    """
    backend: str
    engine: Optional[Engine] = None
    local: Optional[LocalRecordStore] = None

    def open(self) -> Iterator[RecordStore]:
        if self.backend == config.BACKEND_SQL:
            with Session(self.engine) as session:
                yield SqlRecordStore(session)
        else:
            yield self.local


def select_backend(choice: Optional[str] = None, database_url: Optional[str] = None,
                   local_path: Optional[str] = None) -> StoreProvider:
    """
    auto : DB 연결 가능하면 sql, 아니면 local 로 폴백
    sql  : DB 필수 (연결 불가 시 예외)
    local: JSON 파일만 사용
    """
    choice = choice or config.get_backend_choice()
    database_url = database_url or config.get_database_url()
    local_path = local_path or config.get_local_store_path()

    if choice in (config.BACKEND_AUTO, config.BACKEND_SQL):
        engine = create_db_engine(database_url)
        if is_available(engine):
            init_db(engine)
            logger.info("Using SQL record store")
            return StoreProvider(backend=config.BACKEND_SQL, engine=engine,
                                 local=LocalRecordStore(local_path))
        if choice == config.BACKEND_SQL:
            raise StoreUnavailable(f"Cannot connect to database: {database_url}")
        logger.warning("Falling back to local record store at %s", local_path)

    return StoreProvider(backend=config.BACKEND_LOCAL, local=LocalRecordStore(local_path))
