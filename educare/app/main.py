# EduCare Connect backend entrypoint: guardian access, onboarding and permissions.

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from educare.app.api import guardian_links
from educare.app.api import guardian_portal
from educare.app.api import login
from educare.app.api import onboarding
from educare.app.api import register
from educare.app.api import students
from educare.app.core.dev_seed import ensure_default_dev_educator
from educare.app.core.errors import EducareAPIException, educare_exception_handler
from educare.app.core.logging import configure_logging
from educare.app.core.settings import get_settings
from educare.app.db.base import Base
from educare.app.db.session import SessionLocal, engine

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    configure_logging()
    Base.metadata.create_all(bind=engine)
    if settings.environment == "development":
        db = SessionLocal()
        try:
            ensure_default_dev_educator(db)
        finally:
            db.close()
    yield
    # Shutdown
    engine.dispose()


app = FastAPI(title=settings.app_name, version=settings.api_version, lifespan=lifespan)

origins = [
    "http://localhost:8081",
    "http://127.0.0.1:8081",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(EducareAPIException, educare_exception_handler)

app.include_router(register.router)
app.include_router(login.router)
app.include_router(onboarding.router)
app.include_router(students.router)
app.include_router(guardian_links.router)
app.include_router(guardian_portal.router)


@app.get("/")
def read_root():
    return {"app": settings.app_name, "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}
