"""
Development server launcher.

Loads .env, then serves the coach with uvicorn in reload mode on the
HOST / PORT / LOG_LEVEL from settings.  Set DATA_CSV_PATH to start with
an export already loaded.

Usage:
    python scripts/run_dev.py
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

load_dotenv()

import uvicorn

from app.core.config import settings


def banner() -> str:
    base_url = f"http://localhost:{settings.PORT}"
    lines = [
        "=" * 60,
        f"{settings.PROJECT_NAME} (v{settings.VERSION})",
        "=" * 60,
        f"API:  {base_url}/api/v1",
        f"Docs: {base_url}/docs",
        f"Data: {settings.DATA_CSV_PATH or 'none (POST an export to /api/v1/data)'}",
        "",
        "Press Ctrl+C to stop",
        "=" * 60,
    ]
    return "\n".join(lines)


if __name__ == "__main__":
    print(banner())
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
