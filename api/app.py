"""FastAPI application serving the map & routing panel."""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from loguru import logger

from api.map_api import router as map_router
from core.map_panel import MapRoutingPanel
from visualization.folium_map import FoliumMapGenerator


def create_app(panel: MapRoutingPanel = None, mount: bool = True) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.panel is None:
            app.state.panel = MapRoutingPanel()
        if mount:
            app.state.panel.mount()
        yield
        app.state.panel.close()
        logger.info("Map panel closed")

    app = FastAPI(
        title="SK Map & Routing Panel",
        description="Community locations, events and routing for the youth portal",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.panel = panel
    app.include_router(map_router)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health():
        current = app.state.panel
        return {
            "status": "healthy",
            "locations": len(current.store.locations) if current else 0,
            "edit_mode": current.markers.edit_mode if current else False,
        }

    @app.get("/map", response_class=HTMLResponse)
    def render_map():
        """Interactive map of the current panel state."""
        panel_map = FoliumMapGenerator().create_panel_map(app.state.panel)
        return HTMLResponse(content=panel_map.get_root().render())

    return app


app = create_app()
