"""
QuantumCalc Web API Launcher
Simple script to start the web server
"""
import sys

import config
from logging_config import setup_logging


def main():
    setup_logging()
    print("Starting QuantumCalc API...")
    print(f"Access on this PC: http://localhost:{config.WEB_PORT}/api")
    print()

    try:
        import api
    except ImportError as e:
        print(f"Error importing modules: {e}")
        print("\nMake sure you have installed the required dependencies:")
        print("  pip install -e .")
        sys.exit(1)

    try:
        api.create_app().run(host=config.WEB_HOST, port=config.WEB_PORT, debug=False)
    except OSError as e:
        print(f"Error starting server: {e}")
        print("\nTroubleshooting:")
        print("1. Check if another application is using the port")
        print("2. Check firewall settings")
        sys.exit(1)


if __name__ == "__main__":
    main()
