import os


class Settings:
    PROJECT_NAME: str = "phytoquiz"
    DEBUG: bool = os.environ.get("DEBUG", "").lower() in ("1", "true", "yes")
    LOG_DIR: str = os.environ.get("LOG_DIR", "log")
    LOG_FILE: str = "phytoquiz.log"
    DB_DIR: str = os.environ.get("DB_DIR", "db")
    DB_FILE: str = "phytoquiz.db"
    BANKS_DIR: str = os.environ.get("BANKS_DIR", "banks")
    DEFAULT_BANK: str = os.environ.get("DEFAULT_BANK", "pp")
    RANDOM_POOL_SIZE: int = int(os.environ.get("RANDOM_POOL_SIZE", "30"))
    PASS_RATIO: float = float(os.environ.get("PASS_RATIO", "0.7"))
    SESSION_COOKIE_NAME: str = "quiz_session_id"
    SESSION_TIMEOUT_MINUTES: int = 120
    ROOT_PATH: str = os.environ.get("ROOT_PATH", "")


settings = Settings()
