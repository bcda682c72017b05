"""Cinema entrypoint.

Run with:
  python -m cinema
"""

import os
import uvicorn

def main() -> None:
    host = os.getenv("CINEMA_HOST", "0.0.0.0")
    port = int(os.getenv("CINEMA_PORT", "8000"))
    reload = os.getenv("CINEMA_RELOAD", "false").lower() in {"1", "true", "yes", "y"}
    uvicorn.run("cinema.app:app", host=host, port=port, reload=reload, log_config=None)

if __name__ == "__main__":
    main()
