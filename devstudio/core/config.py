"""Runtime configuration read from the environment.

A local `.env` file is loaded first (development only); real environment
variables always win.
"""

import os

from dotenv import load_dotenv

load_dotenv(override=False)


class Settings:
    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./devstudio.db")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Bot username of the Dev Studio system app.
    DEVSTUDIO_USERNAME: str = os.getenv("DEVSTUDIO_USERNAME", "devstudio")

    # Max chat messages returned by the history endpoint.
    HISTORY_LIMIT: int = int(os.getenv("HISTORY_LIMIT", "50"))


settings = Settings()
