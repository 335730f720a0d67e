import json
import os

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEBUG = LOG_LEVEL == "DEBUG"

DRY_RUN = os.getenv("DRY_RUN", "false").lower() == "true"

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise ValueError("DATABASE_URL must be set in the environment")

ALLOWED_ORIGINS_RAW = os.getenv("ALLOWED_ORIGINS")
if not ALLOWED_ORIGINS_RAW:
    raise ValueError("ALLOWED_ORIGINS must be set in the environment")

ALLOWED_ORIGINS: list[str] = [
    origin.strip() for origin in ALLOWED_ORIGINS_RAW.split(",")
]

ADMIN_API_KEY = os.getenv("ADMIN_API_KEY")

HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))

# === Room topology ===
ENTIRE_ROOM_TYPE = os.getenv("ENTIRE_ROOM_TYPE", "entire").strip().lower()
SUB_ROOM_TYPES: list[str] = [
    room.strip().lower()
    for room in os.getenv("SUB_ROOM_TYPES", "room1,room2").split(",")
    if room.strip()
]

# === Pricing (NGN, major units) ===
PRICE_ENTIRE_APARTMENT = int(os.getenv("PRICE_ENTIRE_APARTMENT", "100000"))
PRICE_SINGLE_ROOM = int(os.getenv("PRICE_SINGLE_ROOM", "60000"))
CLEANING_FEE = int(os.getenv("CLEANING_FEE", "20000"))
SERVICE_FEE = int(os.getenv("SERVICE_FEE", "25000"))
EXTRA_GUEST_PER_NIGHT = int(os.getenv("EXTRA_GUEST_PER_NIGHT", "5000"))
INCLUDED_GUESTS = int(os.getenv("INCLUDED_GUESTS", "2"))
MIN_NIGHTS_SINGLE_ROOM = int(os.getenv("MIN_NIGHTS_SINGLE_ROOM", "2"))

# === Paystack ===
PAYSTACK_SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY")
PAYSTACK_BASE_URL = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co/")

# === Shufti Pro ===
SHUFTI_PRO_CLIENT_ID = os.getenv("SHUFTI_PRO_CLIENT_ID")
SHUFTI_PRO_SECRET_KEY = os.getenv("SHUFTI_PRO_SECRET_KEY")
SHUFTI_PRO_BASE_URL = os.getenv("SHUFTI_PRO_BASE_URL", "https://api.shuftipro.com/")
SHUFTI_PRO_CALLBACK_URL = os.getenv("SHUFTI_PRO_CALLBACK_URL")
SHUFTI_PRO_REDIRECT_URL = os.getenv("SHUFTI_PRO_REDIRECT_URL")
SHUFTI_PRO_COUNTRY = os.getenv("SHUFTI_PRO_COUNTRY", "NG")

# === ID document storage (S3 / MinIO) ===
S3_BUCKET_NAME = os.getenv("S3_BUCKET_NAME", "bookastay-id-documents")
S3_ENDPOINT_URL = os.getenv("S3_ENDPOINT_URL")
S3_REGION = os.getenv("S3_REGION", "us-east-1")
S3_ACCESS_KEY = os.getenv("S3_ACCESS_KEY")
S3_SECRET_KEY = os.getenv("S3_SECRET_KEY")
S3_PUBLIC_BASE = os.getenv("S3_PUBLIC_BASE", "")
S3_KEY_PREFIX = os.getenv("S3_KEY_PREFIX", "bookings")

# === Email ===
SMTP_HOST = os.getenv("SMTP_HOST", "localhost")
SMTP_PORT = int(os.getenv("SMTP_PORT", "465"))
SMTP_USERNAME = os.getenv("SMTP_USERNAME")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
SMTP_USE_SSL = os.getenv("SMTP_USE_SSL", "true").lower() == "true"
EMAIL_FROM = os.getenv("EMAIL_FROM", "bookings@bookastay.local")
OWNER_NOTIFICATION_EMAIL = os.getenv("OWNER_NOTIFICATION_EMAIL", EMAIL_FROM)

# === External calendar sync ===
# JSON list of {"url": ..., "room_type": ..., "name": ...}
CALENDAR_FEEDS: list[dict[str, str]] = json.loads(os.getenv("CALENDAR_FEEDS", "[]"))
SYNC_INTERVAL_SECONDS = int(os.getenv("SYNC_INTERVAL_SECONDS", "600"))
SYNC_HORIZON_DAYS = int(os.getenv("SYNC_HORIZON_DAYS", "365"))
CLEANUP_INTERVAL_SECONDS = int(os.getenv("CLEANUP_INTERVAL_SECONDS", "86400"))

# === Outbox ===
OUTBOX_POLL_SECONDS = int(os.getenv("OUTBOX_POLL_SECONDS", "30"))
OUTBOX_MAX_ATTEMPTS = int(os.getenv("OUTBOX_MAX_ATTEMPTS", "5"))
OUTBOX_RETRY_BASE_SECONDS = int(os.getenv("OUTBOX_RETRY_BASE_SECONDS", "60"))

SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "true").lower() == "true"
