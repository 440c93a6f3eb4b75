from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """DB 엔진을 만든다. 전역 엔진을 두지 않고 lifespan에서 한 번 생성해 주입한다.

    SQLite는 워커 감시 스레드에서도 쓰므로 check_same_thread를 끈다.
    """
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    return create_engine(database_url, echo=echo, connect_args=connect_args)


def create_db_and_tables(engine: Engine) -> None:
    import model.image  # noqa: F401 (테이블 등록)
    import model.task  # noqa: F401 (테이블 등록)

    SQLModel.metadata.create_all(engine)
