from fastapi import FastAPI
from lending.core.config import logger
from lending.core.database import Base, engine
from lending.api import routes

app = FastAPI(title="Lending Registry")
app.include_router(routes.router)

# Create tables on startup if they don't exist
@app.on_event("startup")
def on_startup():
    logger.info("Creating database tables (if not present)...")
    Base.metadata.create_all(bind=engine)

@app.get("/health")
def health():
    return {"status": "ok"}
