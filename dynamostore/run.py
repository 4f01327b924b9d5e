#!/usr/bin/env python3
"""Run the dynamostore demo application"""
import uvicorn

from dynamostore.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "dynamostore.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )
