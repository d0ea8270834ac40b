#!/usr/bin/env python3
"""
Run script for the tenantcore API.
This script launches the FastAPI server with every service mounted as a router.
"""
import sys
import traceback

import uvicorn

from tenantcore.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    try:
        print(f"Starting {settings.app_name} API server...")
        print(f"Access the API at http://localhost:{settings.port}{settings.api_prefix}")
        print(f"API documentation at http://localhost:{settings.port}/docs")

        uvicorn.run(
            "tenantcore.main:app",
            host="0.0.0.0",
            port=settings.port,
            reload=settings.is_dev,
            log_level=settings.log_level.lower(),
        )
    except Exception as e:
        print(f"Error starting server: {e}")
        traceback.print_exc()
        sys.exit(1)
