"""
Start the YouTube transcript digest API with uvicorn.

    python run_api.py --port 3001 --reload
"""

import argparse

import uvicorn
from dotenv import load_dotenv

from ytdigest.config import config


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=f"{config.APP_NAME} API server")
    parser.add_argument("--host", default=config.HOST, help=f"Bind address (default: {config.HOST})")
    parser.add_argument("--port", type=int, default=config.PORT, help=f"Port (default: {config.PORT})")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    parser.add_argument("--log-level", default=config.LOG_LEVEL.lower(),
                        choices=["critical", "error", "warning", "info", "debug"],
                        help="uvicorn log level")
    return parser.parse_args(argv)


def main():
    load_dotenv()
    args = parse_args()
    config.initialize()

    print(f"{config.APP_NAME} v{config.APP_VERSION} listening on http://{args.host}:{args.port}")
    print(f"Summaries from {config.OLLAMA_MODEL}, transcripts from whisper ggml-{config.WHISPER_MODEL}")

    uvicorn.run(
        "ytdigest.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
