from fastapi import FastAPI
from sqlmodel import SQLModel
from fastapi.middleware.cors import CORSMiddleware
import logging
import os

from partquote.api import cart, chat, documents, options, pricing, quotes
from partquote.db.session import get_engine, get_session
from partquote.models import catalog as catalog_models  # noqa: F401  (registers tables)
from partquote.models import quote as quote_models  # noqa: F401
from partquote.services.catalog import seed_catalog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:8081").split(",") if o.strip()]
SEED_CATALOG = os.getenv("SEED_CATALOG", "true").lower() in ("1", "true", "yes")

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger("partquote")

app = FastAPI(title="Part Quote Configurator")

# CORS for the configurator frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(options.router, prefix="/options", tags=["options"])
app.include_router(pricing.router, prefix="/price", tags=["pricing"])
app.include_router(cart.router, prefix="/cart", tags=["cart"])
app.include_router(documents.router, prefix="/documents", tags=["documents"])
app.include_router(chat.router, prefix="/chat", tags=["chat"])
app.include_router(quotes.router, prefix="/quotes", tags=["quotes"])


@app.on_event("startup")
def on_startup():
    engine = get_engine()
    SQLModel.metadata.create_all(engine)
    if not SEED_CATALOG:
        return
    session = get_session()
    try:
        seed_catalog(session)
    except Exception as e:
        # the static catalog still answers when the database cannot be seeded
        logger.warning("Failed to seed catalog: %s", e)
    finally:
        session.close()


@app.get("/")
async def root():
    return {"status": "ok", "service": "part-quote-configurator"}
