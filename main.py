"""Command line entry point for the SK map & routing panel."""
import argparse
import sys
from pathlib import Path

from loguru import logger

from configurations.config import Config
from core.map_panel import MapRoutingPanel
from routing.providers import OSRMProvider, default_providers
from routing.route_planner import RoutePlanner
from services.portal_client import PortalClient
from visualization.export_to_geojson import MapLayerExporter
from visualization.folium_map import FoliumMapGenerator


def parse_latlng(value: str):
    try:
        lat, lng = (float(part) for part in value.split(','))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected LAT,LNG but got '{value}'")
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise argparse.ArgumentTypeError(f"Coordinates out of range: {value}")
    return lat, lng


def build_panel(portal_url: str = None, osrm_url: str = None) -> MapRoutingPanel:
    providers = default_providers()
    if osrm_url:
        providers = [OSRMProvider(osrm_url)] + [p for p in providers if not isinstance(p, OSRMProvider)]
    return MapRoutingPanel(client=PortalClient(base_url=portal_url), planner=RoutePlanner(providers))


def export_layers(panel: MapRoutingPanel, output_dir: str) -> dict:
    Path(output_dir).mkdir(parents=True, exist_ok=True)
    exporter = MapLayerExporter(output_dir)
    locations = panel.store.locations
    events = panel.overlays.events_by_location(locations)

    exporter.prepare_locations_geojson(locations, events)
    results = {'locations_geojson': exporter.export_locations_geojson()}
    exporter.prepare_summary_csv(locations, events)
    results['summary_csv'] = exporter.export_summary_csv()

    route = panel.routes.route_info
    if route is not None:
        exporter.prepare_route_geojson(route, panel.routes.destination)
        results['route_geojson'] = exporter.export_route_geojson()
    return results


def main():
    """Command line interface for the map panel."""
    parser = argparse.ArgumentParser(description="SK Map & Routing Panel")
    parser.add_argument("--render", metavar="HTML", help="Render the map to an HTML file")
    parser.add_argument("--export", metavar="DIR", help="Export locations, route and summary to DIR")
    parser.add_argument("--from", dest="origin", type=parse_latlng, metavar="LAT,LNG",
                        help="Your location, used as the route start")
    parser.add_argument("--route-to", metavar="NAME_OR_ID", help="Destination location name or id")
    parser.add_argument("--portal-url", default=Config.PORTAL_API_BASE_URL, help="Portal API base URL")
    parser.add_argument("--osrm-url", default=Config.OSRM_URL, help="OSRM server URL")
    parser.add_argument("--api", action="store_true", help="Start FastAPI server instead")
    parser.add_argument("--port", type=int, default=Config.API_PORT,
                        help=f"Port for FastAPI server (default: {Config.API_PORT})")
    parser.add_argument("--log-level", default=Config.LOG_LEVEL, help="Log level")

    args = parser.parse_args()

    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper())

    if args.api:
        import uvicorn
        from api.app import create_app
        panel = build_panel(args.portal_url, args.osrm_url)
        logger.info(f"🚀 Starting FastAPI server on port {args.port}...")
        try:
            uvicorn.run(create_app(panel), host=Config.API_HOST, port=args.port)
        except OSError as e:
            if "Address already in use" in str(e):
                logger.error(f"❌ Port {args.port} is already in use. Try a different port with --port <number>")
            else:
                logger.error(f"❌ Server startup failed: {e}")
            sys.exit(1)
        return

    if args.route_to and args.origin is None:
        parser.error("--route-to requires --from LAT,LNG")
    if not any([args.render, args.export, args.route_to]):
        parser.error("Nothing to do: pass --render, --export, --route-to or --api")

    with build_panel(args.portal_url, args.osrm_url) as panel:
        panel.mount()

        if args.origin is not None:
            # Same path as a user clicking their position on the map
            panel.start_location_selection()
            panel.handle_map_click(*args.origin)

        if args.route_to:
            destination = panel.store.find(args.route_to)
            if destination is None:
                logger.error(f"❌ Unknown destination: {args.route_to}")
                sys.exit(1)
            route = panel.request_route(destination.id)
            print(f"\nRoute to {destination.name} ({route.provider}{', approximate' if route.approximate else ''})")
            print(f"Distance: {route.distance_label}")
            print(f"Driving:  {route.driving_label}")
            print(f"Walking:  {route.walking_label}")

        if args.export:
            results = export_layers(panel, args.export)
            print(f"\nResults saved to: {args.export}")
            for name, path in results.items():
                print(f"  {name}: {path}")

        if args.render:
            generator = FoliumMapGenerator()
            generator.save_map(generator.create_panel_map(panel), args.render)
            print(f"Interactive map: {args.render}")


if __name__ == "__main__":
    main()
