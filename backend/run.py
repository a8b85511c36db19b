import os

import uvicorn
from dotenv import load_dotenv

load_dotenv()

if __name__ == "__main__":
    uvicorn.run(
        "backend.main:app",
        host=os.getenv("HOST") or "127.0.0.1",
        port=int(os.getenv("PORT") or 3000),
        reload=(os.getenv("RELOAD") or "false").lower() == "true",
        log_level=os.getenv("LOG_LEVEL") or "info",
        access_log=True,
    )
