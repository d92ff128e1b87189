import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from blocknotes.api import auth, notes
from blocknotes.storage.database import init_db

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    init_db()
    yield


app = FastAPI(title="Block Notes API", lifespan=lifespan)
app.include_router(auth.router)
app.include_router(notes.router)


@app.get("/health")
def health():
    return {"ok": True}
