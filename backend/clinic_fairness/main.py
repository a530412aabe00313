from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from sqlalchemy import text
import logging

from .core.config import settings
from .core.database import engine, create_tables
from .routes import routers
from .utils.timezone import get_timezone_info

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
)
# 降低第三方套件噪音
logging.getLogger("uvicorn.error").setLevel(logging.INFO)
logging.getLogger("uvicorn.access").setLevel(logging.INFO)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # 啟動時執行
    logger.info("🚀 正在啟動排班公平性引擎...")

    # 記錄時區資訊
    timezone_info = get_timezone_info()
    logger.info(f"時區設定: {timezone_info['timezone']}")
    logger.info(f"當前診所時間: {timezone_info['clinic_time']}")
    logger.info(f"時間差: {timezone_info['time_difference_hours']} 小時")

    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
            logger.info(f"資料庫連接成功，資料庫名稱：{engine.url.database}")
    except Exception as e:
        logger.error(f"資料庫連接失敗: {str(e)}")
        raise

    # 初始化資料庫表
    create_tables()
    logger.info("✅ 資料庫表已初始化")

    yield

    # 關閉時執行
    logger.info("🛑 排班公平性引擎已關閉")

app = FastAPI(
    title=settings.APP_NAME,
    description="診所排班公平性休假審核API",
    version="1.0.0",
    redirect_slashes=False,
    lifespan=lifespan,
)

# 配置CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["*"],
)

# 註冊所有路由
for router in routers:
    app.include_router(router, prefix="/api")

@app.get("/")
async def root():
    return {"message": "歡迎使用排班公平性引擎API"}

@app.get("/health")
async def health_check():
    return {"status": "healthy", "message": "系統運行正常"}
