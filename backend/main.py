"""
FastAPI Backend for the APK Builder

Turns a web-project repository into an installable Android APK:
clone → install/build → stage web/ → Capacitor → Android patches → Gradle.

API Structure:
- POST /api/build/stream - Start a build, progress streamed as SSE
- GET  /download/{file}   - Published APKs
- GET  /api/health        - Health check
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles

from config import HOST, PORT, CORS_ORIGINS, PUBLIC_DIR, DOWNLOAD_PREFIX
from routers import builds

logging.basicConfig(level=logging.INFO)

VERSION = "5.0.0"

# Initialize FastAPI app
app = FastAPI(
    title="APK Builder API",
    description="Builds Android APKs from web-project repositories",
    version=VERSION
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
)

# Include routers
app.include_router(builds.router)

# Published APKs (read-only)
app.mount(DOWNLOAD_PREFIX, StaticFiles(directory=str(PUBLIC_DIR)), name="download")


@app.get("/", response_class=PlainTextResponse)
async def root():
    """Root endpoint"""
    return f"APK Builder v{VERSION} is running."


@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": VERSION
    }


if __name__ == "__main__":
    import uvicorn

    print(f"""
    ╔════════════════════════════════════════════════════╗
    ║  APK Builder API                                   ║
    ║  Web project → Capacitor → Android APK             ║
    ╚════════════════════════════════════════════════════╝

    🚀 Starting server...
    📡 API: http://{HOST}:{PORT}
    📖 Docs: http://{HOST}:{PORT}/docs

    Endpoints:
    - POST /api/build/stream - Build an APK (SSE event stream)
    - GET  {DOWNLOAD_PREFIX}/<file>   - Download a published APK

    Press Ctrl+C to stop
    """)

    uvicorn.run(
        app,
        host=HOST,
        port=PORT,
        log_level="info"
    )
