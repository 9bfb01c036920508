"""
Machine Status Reports — Application Runner.

Usage:
    python run.py          → FastAPI report engine (port from API_PORT)
    python run.py api      → same
"""

import sys

import uvicorn

from machine_status.core.config import settings


def run_fastapi() -> None:
    """Start the FastAPI report engine."""
    print(f"🚀 FastAPI → http://localhost:{settings.API_PORT}")
    if settings.DEBUG:
        print(f"📄 Docs    → http://localhost:{settings.API_PORT}/api/docs")
    uvicorn.run(
        "machine_status.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    mode = sys.argv[1].lower() if len(sys.argv) > 1 else "api"
    runners = {"api": run_fastapi}
    runner = runners.get(mode)
    if runner is None:
        print(f"Unknown mode '{mode}'. Use: api")
        sys.exit(1)
    runner()
