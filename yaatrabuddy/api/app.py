# yaatrabuddy/api/app.py
"""
FastAPI приложение YaatraBuddy.

Endpoints:
- /auth/* - регистрация, вход, сброс пароля
- POST /rpc/{name} - удалённые процедуры БД
- /payments/* - заказы и расчёт Razorpay
- /data/* - ресурсы приложения
- /upload/* - загрузка файлов
- /admin/* - административные операции
- GET /health - проверка здоровья
- /uploads/* - статика загруженных файлов
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from yaatrabuddy.api.dependencies import (
    cleanup_dependencies,
    get_db,
    get_email_sender,
    get_payment_gateway,
    init_dependencies,
)
from yaatrabuddy.api.handlers import register_exception_handlers
from yaatrabuddy.common.constants import TypeMsg
from yaatrabuddy.common.logger import log_info, setup_logging
from yaatrabuddy.config import settings
from yaatrabuddy.services.admin.routes import router as admin_router
from yaatrabuddy.services.auth.routes import router as auth_router
from yaatrabuddy.services.data.routes import router as data_router
from yaatrabuddy.services.payments.routes import router as payments_router
from yaatrabuddy.services.rpc.routes import router as rpc_router
from yaatrabuddy.services.uploads.routes import router as uploads_router
from yaatrabuddy.shared.models.common import HealthStatus


# === LIFESPAN ===

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Жизненный цикл приложения."""
    from yaatrabuddy.infra.database import close_db, get_db as get_db_manager, init_db
    from yaatrabuddy.infra.email import EmailSender
    from yaatrabuddy.infra.payment_gateway import RazorpayClient
    from yaatrabuddy.infra.storage import BlobStorage

    setup_logging()
    await init_db()

    storage = BlobStorage()
    storage.ensure_dirs()

    await init_dependencies(
        db=get_db_manager(),
        email_sender=EmailSender(),
        payment_gateway=RazorpayClient(),
        storage=storage,
    )
    await log_info(
        f"{settings.system.PROJECT_NAME} {settings.system.VERSION} запущен ({settings.system.ENVIRONMENT})",
        type_msg=TypeMsg.INFO,
    )

    yield

    await get_email_sender().close()
    await get_payment_gateway().close()
    await cleanup_dependencies()
    await close_db()


# === APP ===

app = FastAPI(
    title="YaatraBuddy API",
    description="Бэкенд сервиса совместных поездок для студентов.",
    version=settings.system.VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.server.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth_router)
app.include_router(rpc_router)
app.include_router(payments_router)
app.include_router(data_router)
app.include_router(uploads_router)
app.include_router(admin_router)

app.mount(
    "/uploads",
    StaticFiles(directory=settings.storage.UPLOAD_DIR, check_dir=False),
    name="uploads",
)


# === HEALTH CHECK ===

@app.get("/health", response_model=HealthStatus, tags=["Health"])
async def health_check() -> HealthStatus:
    """Проверка здоровья сервиса и пула соединений."""
    postgres_ok = await get_db().health_check()
    return HealthStatus(
        ok=postgres_ok,
        service=settings.system.PROJECT_NAME,
        status="healthy" if postgres_ok else "degraded",
        version=settings.system.VERSION,
        dependencies={"postgres": "healthy" if postgres_ok else "unhealthy"},
    )
