import os
from dotenv import load_dotenv

load_dotenv()


def _database_uri():
    url = os.getenv("DATABASE_URL", "postgresql://localhost/marketplace")
    rootcert = os.getenv("DB_SSLROOTCERT")
    if rootcert:
        return f"{url}?sslmode=verify-full&sslrootcert={rootcert}"
    return url


class Config:
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_DATABASE_URI = _database_uri()

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
    ACCESS_EXPIRES = int(os.getenv("ACCESS_EXPIRES", 86400))
    EMAIL_VERIFY_EXPIRES = int(os.getenv("EMAIL_VERIFY_EXPIRES", 86400))

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

    SMTP_HOST = os.getenv("SMTP_HOST", "smtp.zoho.com")
    SMTP_PORT = int(os.getenv("SMTP_PORT", 465))
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "no-reply@localhost")
    EMAIL_FROM_NAME = os.getenv("EMAIL_FROM_NAME", "RFQ Marketplace")
    MAIL_SUPPRESS_SEND = os.getenv("MAIL_SUPPRESS_SEND", "false").lower() == "true"

    # days, used when an invitation is accepted without a quoted lead time
    DEFAULT_LEAD_TIME_DAYS = 30
    DEFAULT_PAGE_SIZE = 10
    POOL_PAGE_SIZE = 20


class DevelopmentConfig(Config):
    DEBUG = True
    MAIL_SUPPRESS_SEND = True


class ProductionConfig(Config):
    DEBUG = False


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET_KEY = "test-secret-key-with-enough-length-for-hs256"
    MAIL_SUPPRESS_SEND = True
    CORS_ORIGINS = "http://localhost"
    BCRYPT_LOG_ROUNDS = 4


CONFIGS = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
