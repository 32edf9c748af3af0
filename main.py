import os

import uvicorn

from src.main.config import config

if __name__ == "__main__":
    uvicorn.run(
        "src.main.web:app",
        host=os.getenv("APP_HOST", "0.0.0.0"),
        port=int(os.getenv("APP_PORT", "8000")),
        reload=config.app.DEBUG,
        log_level=config.app.LOG_LEVEL.lower(),
    )
