"""
Server entry point for the Rule Content Service
"""

import sys


def main():
    """Main entry point for the server"""
    from .api import run_api_server
    sys.exit(run_api_server())

if __name__ == "__main__":
    main()
