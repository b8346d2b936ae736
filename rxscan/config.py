import os
from dotenv import load_dotenv

# Load .env as soon as this module is imported (safe to call multiple times)
load_dotenv()

OCR_DEFAULT_LANGUAGE: str = os.getenv("OCR_DEFAULT_LANGUAGE", "eng")
TESSERACT_CMD: str | None = os.getenv("TESSERACT_CMD") or None
OCR_TIMEOUT: float = float(os.getenv("OCR_TIMEOUT", "30"))  # seconds, 0 disables
MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

STORAGE_API_URL: str = os.getenv("STORAGE_API_URL", "http://localhost:5000")
STORAGE_USER_ID: int = int(os.getenv("STORAGE_USER_ID", "1"))
STORAGE_TIMEOUT: float = float(os.getenv("STORAGE_TIMEOUT", "8.0"))  # seconds

CORS_ALLOW_ORIGINS: list[str] = [
    o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()
]
