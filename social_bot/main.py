from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from social_bot.config import settings
from social_bot.database import Base, engine
from social_bot.logging_config import get_logger, setup_logging
from social_bot.routers import conversations, live, manual, webhook
from social_bot.services.pipeline import get_pipeline

setup_logging(settings.log_level, debug=settings.debug)
logger = get_logger("main")

app = FastAPI(
    title="Social AI Bot",
    description="Messenger/Instagram auto-reply service with a live operator dashboard feed",
    version="0.1.0",
)

cors_origins = [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()]
if not cors_origins:
    cors_origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(webhook.router)
app.include_router(conversations.router)
app.include_router(manual.router)
app.include_router(live.router)

Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")


@app.on_event("startup")
def on_startup() -> None:
    Base.metadata.create_all(bind=engine)
    pipeline = get_pipeline()
    logger.info(
        "Service started",
        extra={
            "context": {
                "pages": len(pipeline.page_tokens),
                "products": len(pipeline.reply_policy.catalog),
            }
        },
    )


@app.get("/health")
async def health():
    return {"status": "ok"}
