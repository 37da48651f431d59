#!/usr/bin/env python3
"""
Start the SlideMint carousel editor server.
"""

import logging

import uvicorn
from slidemint.config import get_settings

settings = get_settings()

if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("=" * 50)
    print("SlideMint Carousel Editor")
    print("=" * 50)
    print(f"Starting server at http://{settings.host}:{settings.port}")
    print(f"API Docs: http://localhost:{settings.port}/docs")
    print(f"Storage: {'database' if settings.database_url else 'in-memory'}")
    print("=" * 50)

    uvicorn.run(
        "slidemint.main:app",
        host=settings.host,
        port=settings.port,
        reload=True
    )
