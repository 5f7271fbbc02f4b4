from fastapi import FastAPI

from api.routes import router
from utils.logging_config import configure_logging

configure_logging()

app = FastAPI(
    title="Data Source Gateway API",
    version="0.1.0",
    description="Connection tests, query execution and schema introspection over PostgreSQL, MySQL and MongoDB",
)
app.include_router(router)
