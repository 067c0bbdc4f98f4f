import os

from dotenv import load_dotenv

load_dotenv()


def _env_float(name, default):
    return float(os.getenv(name, default))


def _env_int(name, default):
    return int(os.getenv(name, default))


class Config:
    """Base configuration class"""

    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-in-production")
    FLASK_ENV = os.getenv("FLASK_ENV", "development")
    DEBUG = os.getenv("DEBUG", "True") == "True"

    # Comma-separated list of frontend origins allowed by CORS
    ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000")

    # LLM provider used by the semantic evaluator: moonshot, openai or mistral
    LLM_PROVIDER = os.getenv("LLM_PROVIDER", "moonshot")
    LLM_MODEL = os.getenv("LLM_MODEL")  # None -> provider default
    SEMANTIC_EVALUATION_ENABLED = os.getenv("SEMANTIC_EVALUATION_ENABLED", "True") == "True"
    SEMANTIC_REQUEST_TIMEOUT = _env_float("SEMANTIC_REQUEST_TIMEOUT", "10.0")

    # Retry with exponential backoff for transient provider errors
    RETRY_MAX_ATTEMPTS = _env_int("RETRY_MAX_ATTEMPTS", "3")
    RETRY_INITIAL_DELAY = _env_float("RETRY_INITIAL_DELAY", "1.0")  # seconds
    RETRY_MAX_DELAY = _env_float("RETRY_MAX_DELAY", "10.0")  # seconds
    RETRY_BACKOFF_MULTIPLIER = _env_float("RETRY_BACKOFF_MULTIPLIER", "2.0")

    # Circuit breaker guarding the provider
    CIRCUIT_BREAKER_THRESHOLD = _env_int("CIRCUIT_BREAKER_THRESHOLD", "5")
    CIRCUIT_BREAKER_RESET_TIMEOUT = _env_float("CIRCUIT_BREAKER_RESET_TIMEOUT", "30.0")  # seconds

    # Grading policy. Historical values, tunable rather than derived.
    NUMERIC_TOLERANCE_RATIO = _env_float("NUMERIC_TOLERANCE_RATIO", "0.05")
    FUZZY_MATCH_THRESHOLD = _env_float("FUZZY_MATCH_THRESHOLD", "0.7")
    UNESCALATED_CONFIDENCE = _env_float("UNESCALATED_CONFIDENCE", "0.3")


class DevelopmentConfig(Config):
    """Development environment configuration"""

    DEBUG = True


class ProductionConfig(Config):
    """Production environment configuration"""

    DEBUG = False

    # No wildcard default in production, origins must be configured
    ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "")


class TestingConfig(Config):
    """Testing environment configuration"""

    TESTING = True
    DEBUG = True
    SEMANTIC_EVALUATION_ENABLED = False
    RETRY_INITIAL_DELAY = 0.0
    RETRY_MAX_DELAY = 0.0


config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}
