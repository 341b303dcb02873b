"""
Uvicorn server runner with configurable logging.

Usage:
    python run.py

Environment variables (set in .env file):
    DEBUG=true - Enable debug logging
    PORT=8000 - Set server port (default: 8000)
    HOST=127.0.0.1 - Set server host (default: 127.0.0.1)
    TRACKER_BASE_URL, GCP_PROJECT_ID, LLM_PROVIDER - see relnotes/config.py
"""

import uvicorn
from relnotes.config import get_settings

if __name__ == "__main__":
    import os

    settings = get_settings()

    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))
    log_level = "debug" if settings.debug else "info"

    print(f"Starting {settings.app_name} server...")
    print(f"Host: {host}")
    print(f"Port: {port}")
    print(f"Log Level: {log_level}")
    print(f"Tracker: {settings.tracker_base_url} ({settings.tracker_api_version})")
    print(f"LLM provider: {settings.llm_provider}")
    print(f"Docs available at: http://{host}:{port}/docs")

    uvicorn.run(
        "relnotes.main:app",
        host=host,
        port=port,
        reload=settings.debug,
        log_level=log_level,
        access_log=True,
    )
