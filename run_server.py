"""Run the SocialHub API under Uvicorn."""
from __future__ import annotations

import os

import uvicorn


def main() -> None:
    host = os.getenv("SOCIALHUB_HOST", "0.0.0.0")
    port = int(os.getenv("SOCIALHUB_PORT", "8000"))
    reload = os.getenv("UVICORN_RELOAD", "false").lower() == "true"
    uvicorn.run("socialhub.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    main()
