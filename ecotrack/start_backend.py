#!/usr/bin/env python3
"""
Backend startup wrapper.
"""
import os
import sys

import uvicorn

from ecotrack.core.config import settings

HOST = os.getenv("ECOTRACK_HOST", "0.0.0.0")
PORT = int(os.getenv("ECOTRACK_PORT", "8000"))


def main() -> None:
    print("[Backend] Starting EcoTrack Lite")
    print(f"[Backend] Server: http://localhost:{PORT}")
    print("[Backend] Press CTRL+C to stop")
    try:
        uvicorn.run(
            "ecotrack.main:app",
            host=HOST,
            port=PORT,
            reload=False,
            log_level=settings.LOG_LEVEL.lower(),
            access_log=True,
        )
    except KeyboardInterrupt:
        print("\n[Backend] Shutting down...")
        sys.exit(0)


if __name__ == "__main__":
    main()
