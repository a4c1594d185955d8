import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, APIRouter
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from blooddrive.config import settings
from blooddrive.database import init_db
from blooddrive.routes.appointments.router import router as appointments_router
from blooddrive.routes.blood_units.router import router as blood_units_router
from blooddrive.routes.registry.router import router as registry_router
from blooddrive.routes.reports.router import router as reports_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="Blood Drive API", version="1.0.0", lifespan=lifespan)


@app.get("/", include_in_schema=False)
def read_root():
    return RedirectResponse(url="/docs")


api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(registry_router)
api_v1_router.include_router(appointments_router)
api_v1_router.include_router(blood_units_router)
api_v1_router.include_router(reports_router)

app.include_router(api_v1_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000",
                   "http://127.0.0.1:3000"],
    allow_methods=["*"],
    allow_headers=["*"],
)
