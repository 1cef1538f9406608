"""Configuration for the plot-data offline sync queue."""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Base paths
BASE_DIR = Path(__file__).resolve().parent.parent
LOGS_DIR = Path(os.getenv("LOGS_DIR", str(BASE_DIR / "logs")))
LOGS_DIR.mkdir(parents=True, exist_ok=True)

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
BETTERSTACK_SOURCE_TOKEN = os.getenv("BETTERSTACK_SOURCE_TOKEN")
BETTERSTACK_INGEST_HOST = os.getenv("BETTERSTACK_INGEST_HOST")

# Durable store: "file", "postgres" or "memory"
QUEUE_STORE = os.getenv("QUEUE_STORE", "file")
QUEUE_STORE_DIR = Path(os.getenv("QUEUE_STORE_DIR", str(BASE_DIR / "data")))
DATABASE_URL = os.getenv("DATABASE_URL")

# Storage keys
ACTION_QUEUE_KEY = os.getenv("ACTION_QUEUE_KEY", "maechaem_offline_queue")
IMAGE_QUEUE_KEY = os.getenv("IMAGE_QUEUE_KEY", "maechaem_offline_image_queue")
STATUS_KEY = os.getenv("STATUS_KEY", "maechaem_sync_status")

# Remote API
API_BASE_URL = os.getenv("API_BASE_URL")
API_TOKEN = os.getenv("API_TOKEN")
ACTIONS_ENDPOINT = os.getenv("ACTIONS_ENDPOINT", "/actions")
IMAGES_ENDPOINT = os.getenv("IMAGES_ENDPOINT", "/images")
HEALTH_ENDPOINT = os.getenv("HEALTH_ENDPOINT", "/health")
SUBMIT_TIMEOUT = float(os.getenv("SUBMIT_TIMEOUT", "30"))  # seconds per submit
CONNECT_RETRIES = int(os.getenv("CONNECT_RETRIES", "3"))

# Sync settings
CONNECTIVITY_INTERVAL = int(os.getenv("CONNECTIVITY_INTERVAL", "15"))  # seconds between health checks
SYNC_INTERVAL = int(os.getenv("SYNC_INTERVAL", "60"))  # seconds between periodic drains
DRAIN_POLICY = os.getenv("DRAIN_POLICY", "continue")  # "continue" or "halt"

# Image preparation
IMAGE_MAX_DIMENSION = int(os.getenv("IMAGE_MAX_DIMENSION", "1600"))
IMAGE_JPEG_QUALITY = int(os.getenv("IMAGE_JPEG_QUALITY", "75"))


def validate_config():
    """Validate required configuration."""
    errors = []

    if QUEUE_STORE not in ("file", "postgres", "memory"):
        errors.append(f"QUEUE_STORE must be one of file, postgres, memory: {QUEUE_STORE}")
    elif QUEUE_STORE == "postgres" and not DATABASE_URL:
        errors.append("DATABASE_URL is required when QUEUE_STORE=postgres")
    elif QUEUE_STORE == "file":
        try:
            QUEUE_STORE_DIR.mkdir(parents=True, exist_ok=True)
        except Exception as e:
            errors.append(f"Cannot create QUEUE_STORE_DIR: {e}")

    if not API_BASE_URL:
        errors.append("API_BASE_URL is required")
    elif not API_BASE_URL.startswith(("http://", "https://")):
        errors.append(f"API_BASE_URL must be an http(s) URL: {API_BASE_URL}")

    if DRAIN_POLICY not in ("continue", "halt"):
        errors.append(f"DRAIN_POLICY must be 'continue' or 'halt': {DRAIN_POLICY}")

    if SUBMIT_TIMEOUT <= 0:
        errors.append("SUBMIT_TIMEOUT must be positive")

    if not 1 <= IMAGE_JPEG_QUALITY <= 100:
        errors.append("IMAGE_JPEG_QUALITY must be between 1 and 100")

    if ACTION_QUEUE_KEY == IMAGE_QUEUE_KEY:
        errors.append("ACTION_QUEUE_KEY and IMAGE_QUEUE_KEY must differ")

    if errors:
        raise ValueError("Config errors:\n  " + "\n  ".join(errors))
