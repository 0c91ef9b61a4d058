import uvicorn

from intake.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "intake.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
