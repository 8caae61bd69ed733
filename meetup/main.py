import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import CORS_ORIGINS, LOG_LEVEL
from .database import create_db_and_tables
from .errors import register_exception_handlers
from .routers import devices, friends, notifications

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

app = FastAPI(title="Meetup Friends API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

@app.get("/")
async def root():
    return {"message": "Meetup Friends API"}

app.include_router(friends.router)
app.include_router(notifications.router)
app.include_router(devices.router)

@app.on_event("startup")
def on_startup():
    create_db_and_tables()
