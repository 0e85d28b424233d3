# Service configuration
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

# Chat generation
CHAT_TEMPERATURE = 0.7
CHAT_MAX_OUTPUT_TOKENS = 1500

# Document analysis favors consistency over creativity
ANALYSIS_TEMPERATURE = 0.3
ANALYSIS_MAX_OUTPUT_TOKENS = 3000

COMPLETION_TIMEOUT_SECONDS = float(os.getenv("COMPLETION_TIMEOUT_SECONDS", "90"))
DOWNLOAD_TIMEOUT_SECONDS = float(os.getenv("DOWNLOAD_TIMEOUT_SECONDS", "30"))

# Credits
FREE_TIER = "free"
DEFAULT_FREE_CREDITS = 5

# Documents
DOCUMENTS_BUCKET = os.getenv("DOCUMENTS_BUCKET", "documents")
MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10MB

PLAIN_TEXT_TYPES = ("text/plain", "text/markdown")
PDF_TYPE = "application/pdf"
WORD_TYPES = (
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)
ALLOWED_DOCUMENT_TYPES = (PDF_TYPE,) + WORD_TYPES + PLAIN_TEXT_TYPES

MAX_DOCUMENT_CHARS = 12000
TRUNCATION_MARKER = "\n\n[Document truncated due to length]"
