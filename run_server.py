#!/usr/bin/env python3
"""FastAPI server entry point for the search-gated chat service."""

import uvicorn
from dotenv import load_dotenv

load_dotenv()

if __name__ == "__main__":
    import argparse

    from config.config import Config

    config = Config.from_env()

    parser = argparse.ArgumentParser(description="Search-gated chat server")
    parser.add_argument("--host", default=config.host, help="Host to bind to")
    parser.add_argument("--port", type=int, default=config.port, help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    args = parser.parse_args()

    print(f"Server running on http://{args.host}:{args.port}")
    for line in config.describe():
        print(f"  {line}")

    uvicorn.run(
        "server.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )
