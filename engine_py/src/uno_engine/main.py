"""FastAPI main application for the UNO game backend"""

import logging
import os

from .ws.server import create_app

# Configure logging
logging.basicConfig(level=os.getenv("LOG_LEVEL", "info").upper())
logger = logging.getLogger(__name__)

app = create_app(title="UNO Card Game API", version="1.0.0")


@app.get("/")
async def root():
    return {"message": "UNO Card Game API", "version": "1.0.0"}
