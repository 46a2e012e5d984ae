#!/usr/bin/env python3
"""
Entry point for the Chess Academy backend.

Usage:
    python run.py

Environment Variables:
    FLASK_ENV: development, production or testing (default: development)
    PORT: Port to run on (default: 5000)
    DATABASE_URL, REDIS_URL, GCS_BUCKET: see academy/config.py
"""
import os

from academy.app import create_app


def run_server():
    """Run the academy API service."""
    app = create_app()
    port = int(os.getenv('PORT', 5000))
    debug = os.getenv('FLASK_ENV', 'development') == 'development'

    app.logger.info(f"Starting Academy API on port {port}...")
    app.run(host='0.0.0.0', port=port, debug=debug)


if __name__ == '__main__':
    run_server()
