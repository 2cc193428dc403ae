#!/usr/bin/env python
"""Run the FastAPI server."""

import os

import uvicorn


def main():
    """Run the FastAPI application."""
    uvicorn.run(
        "orgvault.api.app:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "false").lower() == "true",
        log_level="info"
    )


if __name__ == "__main__":
    main()
