#!/usr/bin/env python3
"""
Troop Cookie Tracker Entry Point

Starts the FastAPI server on the configured host and port.
"""

import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from troop_cookies.api.server import run_server
from troop_cookies.config import get_config


if __name__ == "__main__":
    config = get_config()
    print("Starting Troop Cookie Tracker...")
    print(f"Database: {config.database_url or 'local SQLite file'}")
    print(f"API available at: http://localhost:{config.api_port}")
    print(f"Documentation at: http://localhost:{config.api_port}/docs")
    print()

    try:
        run_server(host=config.api_host, port=config.api_port, debug=False)
    except KeyboardInterrupt:
        print("\nShutting down Troop Cookie Tracker...")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)
