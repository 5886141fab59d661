"""
Configuration for the APK Builder Backend
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Paths
BASE_DIR = Path(__file__).parent
WORKSPACE_DIR = Path(os.getenv("WORKSPACE_DIR", str(BASE_DIR / "workspace")))
PUBLIC_DIR = Path(os.getenv("PUBLIC_DIR", str(BASE_DIR / "public")))

# Create directories if they don't exist
WORKSPACE_DIR.mkdir(parents=True, exist_ok=True)
PUBLIC_DIR.mkdir(parents=True, exist_ok=True)

# Published APKs are served read-only under this prefix
DOWNLOAD_PREFIX = "/download"

# Overrides the forwarded/request host when building download URLs (e.g. "https://builder.example.com")
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "").rstrip("/")

# Keep <WORKSPACE_DIR>/<build_id> after the stream closes (useful for debugging failed builds)
KEEP_WORKSPACE = os.getenv("KEEP_WORKSPACE", "true").lower() in ("1", "true", "yes")

# Build request defaults
DEFAULT_APP_NAME = "My App"
DEFAULT_APP_ID = "com.appbuilder.generated"
DEFAULT_ORIENTATION = "portrait"
DEFAULT_VERSION_CODE = "1"
DEFAULT_VERSION_NAME = "1.0"

# Android / Capacitor
KOTLIN_STDLIB_VERSION = os.getenv("KOTLIN_STDLIB_VERSION", "1.8.22")
CAPACITOR_PACKAGES = ["@capacitor/core", "@capacitor/cli", "@capacitor/android"]
ICON_DOWNLOAD_TIMEOUT = int(os.getenv("ICON_DOWNLOAD_TIMEOUT", "30"))

# Server Configuration
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "7860"))
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]
