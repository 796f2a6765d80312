#!/usr/bin/env python3
"""
Script to run the Local Library catalog server.
"""

import uvicorn

from catalog.config import config


def main():
    """Run the catalog server."""
    # Logging is configured by the application lifespan
    print("Starting Local Library catalog server")
    print(f"Host: {config.host}")
    print(f"Port: {config.port}")
    print(f"Debug: {config.debug}")
    print(f"Database: {config.mongodb_database}")
    print("=" * 50)

    uvicorn.run(
        "catalog.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.log_level.lower(),
        access_log=True
    )


if __name__ == "__main__":
    main()
