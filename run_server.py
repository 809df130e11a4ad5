#!/usr/bin/env python
"""
Production Server Entry Point

Starts the reporting API.
Usage:
    Development:  python run_server.py --dev
    Production:   python run_server.py

    Or with Gunicorn:
    gunicorn fieldsales.main:app -c gunicorn.conf.py
"""

import argparse
import os
import subprocess

from fieldsales.config import get_settings

APP = "fieldsales.main:app"


def run_dev_server(port: int):
    """Run development server with auto-reload."""
    import uvicorn

    uvicorn.run(
        APP,
        host="127.0.0.1",
        port=port,
        reload=True,
        reload_dirs=["fieldsales"],
        log_level="debug",
        access_log=True,
    )


def run_prod_server(port: int):
    """Run production server with Uvicorn directly."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        APP,
        host=settings.api_host,
        port=port,
        workers=int(os.getenv("WORKERS", 4)),
        log_level=settings.monitoring.log_level.lower(),
        access_log=True,
        proxy_headers=True,
        forwarded_allow_ips="*",
        server_header=False,
    )


def run_gunicorn(port: int):
    """Run with Gunicorn (recommended for production)."""
    env = dict(os.environ, API_PORT=str(port))
    subprocess.run(["gunicorn", APP, "-c", "gunicorn.conf.py"], env=env, check=False)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Field Sales Reporting API Server")
    parser.add_argument("--dev", action="store_true", help="Run in development mode with auto-reload")
    parser.add_argument("--gunicorn", action="store_true", help="Run with Gunicorn (production)")
    parser.add_argument("--port", type=int, default=None, help="Port to run on (default: API_PORT or 8000)")

    args = parser.parse_args()
    port = args.port or get_settings().api_port

    if args.dev:
        print("Starting development server...")
        run_dev_server(port)
    elif args.gunicorn:
        print("Starting production server with Gunicorn...")
        run_gunicorn(port)
    else:
        print("Starting production server with Uvicorn...")
        run_prod_server(port)
