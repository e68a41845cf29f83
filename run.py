#!/usr/bin/env python3
"""
mybank Entry Point

Starts the FastAPI server for the branch accounts API.
"""

import sys

from mybank.api import run_server
from mybank.config import get_config


if __name__ == "__main__":
    config = get_config()
    print("🏦 Starting mybank accounts API...")
    print(f"💾 Storage: {config.storage_backend} ({config.database_path})")
    print("💰 All balance arithmetic uses Decimal precision")
    print(f"🌐 API available at: http://localhost:{config.api_port}")
    print(f"📚 Documentation at: http://localhost:{config.api_port}/docs")
    print()

    try:
        run_server(debug=False)
    except KeyboardInterrupt:
        print("\n👋 Shutting down mybank...")
    except Exception as e:
        print(f"❌ Error starting server: {e}")
        sys.exit(1)
