#!/usr/bin/env python3
"""
Bank Ledger Entry Point

Starts the FastAPI reference dispatcher for the ledger state machine.
"""

import sys

from bank_ledger.api import run_server
from bank_ledger.config import get_config


if __name__ == "__main__":
    config = get_config()
    print("🏦 Starting Bank Ledger...")
    print(f"💾 Storage backend: {config.storage_backend}")
    print(f"🌐 API available at: http://{config.api_host}:{config.api_port}")
    print(f"📚 Documentation at: http://{config.api_host}:{config.api_port}/docs")
    print()

    try:
        run_server(
            host=config.api_host,
            port=config.api_port,
            debug=False
        )
    except KeyboardInterrupt:
        print("\n👋 Shutting down Bank Ledger...")
    except Exception as e:
        print(f"❌ Error starting server: {e}")
        sys.exit(1)
