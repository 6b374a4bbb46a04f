#!/usr/bin/env python3
"""Startup script for the Truco match engine backend"""

import logging
import os

import uvicorn


def main():
    port = int(os.getenv("PORT", 8000))
    host = os.getenv("HOST", "0.0.0.0")
    log_level = os.getenv("LOG_LEVEL", "info").lower()

    logging.basicConfig(level=log_level.upper())
    logger = logging.getLogger("truco_engine")

    logger.info(f"Starting Truco match engine on {host}:{port}")
    logger.info(f"Health check available at: http://{host}:{port}/health")
    logger.info(f"WebSocket endpoint: ws://{host}:{port}/ws")

    uvicorn.run(
        "truco_engine.ws.server:app",
        host=host,
        port=port,
        reload=os.getenv("RELOAD", "false").lower() == "true",
        log_level=log_level
    )

if __name__ == "__main__":
    main()
