#!/usr/bin/env python3
"""
Database management script for deployment.
Run this during the build/deployment pipeline to create missing tables.
"""
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from academy.app import create_app
from academy.models import db

logger = logging.getLogger(__name__)


def deploy():
    """Run deployment tasks."""
    app = create_app()
    with app.app_context():
        try:
            db.create_all()
            logger.info("Database tables are in place.")
        except SQLAlchemyError as e:
            logger.error(f"Error creating tables: {e}")
            sys.exit(1)


if __name__ == '__main__':
    deploy()
