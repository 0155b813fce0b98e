import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_service import auth_routes, histories_routes, patients_routes, users_routes
from clinic_service import users_repository
from clinic_service import db as database
from clinic_service.config import Settings, get_settings
from clinic_service.errors import Forbidden, InternalError, NotFound, register_error_handlers
from clinic_service.seeder import ensure_default_admin

VERSION = "1.0.0"

app_settings = get_settings()

# -----------------------------------------------------
# Logging configuration
# -----------------------------------------------------
logging.basicConfig(
    level=getattr(logging, app_settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s:%(lineno)d] %(message)s",
)
logger = logging.getLogger("clinic_service")


# -----------------------------------------------------
# Startup / shutdown
# -----------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    database.init_db()
    if app_settings.seed_default_admin:
        db = database.SessionLocal()
        try:
            ensure_default_admin(db, app_settings)
        finally:
            db.close()
    logger.info("Clinic service started (environment=%s)", app_settings.environment)
    yield
    database.shutdown()


app = FastAPI(title="ClinicService", version=VERSION, lifespan=lifespan)

if app_settings.is_production:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_origin_regex=r"https://.*\.(railway\.app|ngrok-free\.app|ngrok\.io)",
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

register_error_handlers(app)

app.include_router(auth_routes.router, prefix="/api/auth", tags=["Auth"])
app.include_router(users_routes.router, prefix="/api/users", tags=["Users"])
app.include_router(patients_routes.router, prefix="/api/patients", tags=["Patients"])
app.include_router(histories_routes.router, prefix="/api/clinical-history", tags=["Clinical history"])


# -----------------------------------------------------
# Service endpoints
# -----------------------------------------------------
@app.get("/api/health")
def health(settings: Settings = Depends(get_settings)):
    return {
        "status": "ok",
        "service": "clinic_service",
        "version": VERSION,
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/api/test-db")
def test_db(db: Session = Depends(database.get_db)):
    try:
        server_time = db.execute(text("SELECT CURRENT_TIMESTAMP")).scalar()
    except SQLAlchemyError as exc:
        raise InternalError("Database unreachable") from exc
    return {"database": "connected", "server_time": str(server_time)}


@app.post("/api/reset-admin-password")
def reset_admin_password(db: Session = Depends(database.get_db),
                         settings: Settings = Depends(get_settings)):
    if settings.is_production:
        raise Forbidden("Disabled in production")
    admin = users_repository.get_by_email(db, settings.default_admin_email)
    if not admin:
        raise NotFound("Default admin not found")
    admin.password_hash = users_repository.hash_password(settings.default_admin_password)
    db.commit()
    logger.warning("Default admin password reset (%s)", admin.email)
    return {"message": "Admin password reset", "email": admin.email}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("clinic_service.main:app", host="0.0.0.0", port=3000)
