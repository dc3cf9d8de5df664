import os
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()


def _int_env(name, default):
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")
    JWT_SECRET = os.environ.get("JWT_SECRET") or SECRET_KEY
    SUPABASE_URL = os.environ.get("SUPABASE_URL")
    SUPABASE_KEY = os.environ.get("SUPABASE_KEY")

    GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY")
    GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-3-flash-preview")
    FONNTE_TOKEN = os.environ.get("FONNTE_TOKEN")
    FONNTE_URL = "https://api.fonnte.com/send"
    ADMIN_WHATSAPP = os.environ.get("ADMIN_WHATSAPP", "6281234567890")

    # 1 hour sessions, same as the old society portal
    PERMANENT_SESSION_LIFETIME = timedelta(seconds=3600)
    JWT_EXPIRES_MINUTES = 5
    SESSION_IDLE_SECONDS = _int_env("SESSION_IDLE_SECONDS", 1800)
    RATE_LIMIT_WINDOW = 60
    RATE_LIMIT_MAX = 30
    MAX_CONTENT_LENGTH = 8 * 1024 * 1024
    MAX_IMAGE_SIZE = 2 * 1024 * 1024
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # simulated gold price used by TAMASA and SILA
    GOLD_PRICE_PER_GRAM = _int_env("GOLD_PRICE_PER_GRAM", 2947000)
    LATE_FEE = _int_env("LATE_FEE", 5000)

    MIN_TOPUP = 10000
    MIN_WITHDRAW = 50000
    MIN_TRANSFER = 10000
    MIN_SAVINGS_DEPOSIT = 10000
    MIN_FINANCING = 100000
    MIN_TAMASA = 10000

    BANK_ACCOUNTS = [
        {"name": "BCA", "number": "1234567890", "holder": "KOPERASI KKJ PUSAT"},
        {"name": "MANDIRI", "number": "0987654321", "holder": "KOPERASI KKJ PUSAT"},
    ]


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    JWT_SECRET = "test-secret"
    SUPABASE_URL = "http://supabase.test"
    SUPABASE_KEY = "test-key"
    GEMINI_API_KEY = "test-gemini"
    FONNTE_TOKEN = "test-fonnte"
    GOLD_PRICE_PER_GRAM = 1000000
