from __future__ import annotations

import argparse
from typing import List, Optional

import uvicorn

from ..config import EngineConfig


def main(argv: Optional[List[str]] = None) -> None:
    config = EngineConfig.from_env()
    parser = argparse.ArgumentParser(description="Serve the chessai HTTP API")
    parser.add_argument("--host", type=str, default=config.host)
    parser.add_argument("--port", type=int, default=config.port)
    parser.add_argument("--log-level", type=str, default=config.log_level.lower())
    args = parser.parse_args(argv)

    uvicorn.run(
        "chessai.protocol.http.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
