"""API server entry point for python -m veoprompt.api"""
import logging

import uvicorn
from veoprompt.config import get_settings

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    settings = get_settings()
    uvicorn.run(
        "veoprompt.api.app:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=False,
    )
