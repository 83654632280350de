"""
storyweave API server entry point.

Run with:
    python -m storyweave.api.main

Or with uvicorn directly:
    uvicorn storyweave.api.main:app --reload --port 8000
"""

import argparse
import logging
import os

import uvicorn

from .server import create_app

logger = logging.getLogger(__name__)


def main():
    """Main entry point for the storyweave API server."""
    parser = argparse.ArgumentParser(description="storyweave API Server")
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)",
    )
    parser.add_argument(
        "--data-dir",
        default=".",
        help="Directory holding storyweave.json and saves",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    os.environ["STORYWEAVE_DATA_DIR"] = args.data_dir

    logger.info(f"Starting storyweave API on {args.host}:{args.port} (data dir: {args.data_dir})")

    uvicorn.run(
        "storyweave.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="debug" if args.debug else "info",
    )


def get_app():
    """Factory function for creating the FastAPI app."""
    return create_app(data_dir=os.environ.get("STORYWEAVE_DATA_DIR", "."))


app = get_app()


if __name__ == "__main__":
    main()
