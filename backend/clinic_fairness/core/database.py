from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from .config import settings

def normalize_database_url(url: str) -> str:
    """postgresql:// 一律改用 psycopg 驅動"""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url

def build_engine(url: str, **kwargs) -> Engine:
    """
    建立 SQLAlchemy 引擎

    PostgreSQL 經 PgBouncer（交易模式）時 server-side prepared statements 會在連線重用時失效，需關閉；
    sqlite 則需允許跨執行緒使用連線（FastAPI 的同步路由在 threadpool 執行）。
    """
    url = normalize_database_url(url)
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    else:
        connect_args = {"prepare_threshold": 0}
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True, **kwargs)

engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# 所有 ORM 模型的基底
Base = declarative_base()

# 獲取數據庫會話
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def create_tables(bind: Engine = None):
    # 確保所有模型都已註冊到 Base.metadata
    from .. import models  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
