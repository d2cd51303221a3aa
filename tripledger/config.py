import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    # Database
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./tripledger.db")

    # Runtime
    ENVIRONMENT = os.getenv("ENVIRONMENT", "production")  # or "development"
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Upstream provider (client-credentials token endpoint)
    PROVIDER_TOKEN_URL = os.getenv("PROVIDER_TOKEN_URL")
    PROVIDER_CLIENT_ID = os.getenv("PROVIDER_CLIENT_ID")
    PROVIDER_CLIENT_SECRET = os.getenv("PROVIDER_CLIENT_SECRET")

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

settings = Settings()
