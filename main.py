import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles

import config
from dataBase import db, ensure_indexes
from errors import register_exception_handlers
from routes import (
    auth_routes,
    book_routes,
    exchange_routes,
    user_routes,
    preferences_routes,
    stats_routes,
)
from services.email_service import SmtpMailSender
from services.storage import ImageStorage

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

if config.SECRET_KEY == config.DEFAULT_SECRET_KEY:
    logger.warning("SECRET_KEY is not set, falling back to the development key")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await ensure_indexes(db)
    yield


app = FastAPI(title="BookSwap API", version="1.0.0", lifespan=lifespan)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.state.mail_sender = SmtpMailSender(
    host=config.SMTP_HOST,
    port=config.SMTP_PORT,
    user=config.EMAIL_USER,
    password=config.EMAIL_PASS,
)
app.state.image_storage = ImageStorage(root=config.UPLOAD_DIR, max_bytes=config.MAX_IMAGE_BYTES)

app.include_router(auth_routes)
app.include_router(book_routes)
app.include_router(exchange_routes)
app.include_router(user_routes)
app.include_router(preferences_routes)
app.include_router(stats_routes)
app.mount("/uploads", StaticFiles(directory=config.UPLOAD_DIR, check_dir=False), name="uploads")


@app.get("/")
def root():
    return RedirectResponse(url="/docs")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=config.PORT)
