"""
FastAPI application entry point.

Run with: uvicorn api.main:app --reload
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from backend/.env (optional) before other imports that read env
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(env_path)

from api.routes import routing
from settings import settings

logging.basicConfig(
    level=getattr(logging, settings.ROUTER_LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create app
app = FastAPI(
    title="Tile Road Router API",
    description="On-demand road graph routing over Overpass tiles",
    version="0.1.0",
)

# CORS middleware for the map front end
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure properly for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(routing.router, prefix="/route", tags=["routing"])


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Tile Road Router API"}


@app.get("/health")
async def health():
    """Health check endpoint with graph size."""
    nodes, edges = routing.get_routing_session().network.stats()
    return {
        "status": "healthy",
        "graph_nodes": nodes,
        "graph_edges": edges,
    }
