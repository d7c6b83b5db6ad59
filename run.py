"""
Run the lender match API.
Usage: python3 run.py   (host/port from HOST and PORT, default 0.0.0.0:3005)
"""
import uvicorn

from config import settings

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
