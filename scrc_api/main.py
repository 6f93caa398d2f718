"""
Process entry point.

    uvicorn scrc_api.main:app
    python -m scrc_api.main
"""
import logging

import uvicorn

from scrc_api.app import create_app
from scrc_api.config import settings

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

app = create_app(settings)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
