"""Export map layers to GeoJSON and summary CSV."""
import os
import tempfile
from typing import Dict, List, Optional

import geopandas as gpd
import pandas as pd
from loguru import logger
from shapely.geometry import LineString, Point

from models.map_entities import Event, Location, RouteInfo


class MapLayerExporter:
    def __init__(self, export_dir: str = None):
        self.locations_gdf = None
        self.route_gdf = None
        self.summary_df = None
        # Default to a temp directory rather than the working tree
        self.export_dir = export_dir or os.path.join(tempfile.gettempdir(), 'sk_map_exports')
        os.makedirs(self.export_dir, exist_ok=True)

    def prepare_locations_geojson(self, locations: List[Location],
                                  events_by_location: Dict[str, List[Event]] = None) -> gpd.GeoDataFrame:
        """Prepare location markers for GeoJSON export."""
        events_by_location = events_by_location or {}
        features = []
        for location in locations:
            events = events_by_location.get(location.id, [])
            features.append({
                'location_id': location.id,
                'name': location.name,
                'type': location.type,
                'description': location.description or '',
                'address': location.address or '',
                'event_count': len(events),
                'active_events': len([e for e in events if str(e.status).upper() == 'ACTIVE']),
                'geometry': Point(location.longitude, location.latitude),
            })

        self.locations_gdf = gpd.GeoDataFrame(features, geometry='geometry', crs='EPSG:4326') if features \
            else gpd.GeoDataFrame(columns=['location_id', 'name', 'type', 'geometry'], geometry='geometry', crs='EPSG:4326')
        logger.info(f"Prepared {len(features)} locations for export")
        return self.locations_gdf

    def prepare_route_geojson(self, route: RouteInfo, destination: Optional[Location] = None) -> gpd.GeoDataFrame:
        """Prepare the active route as a single LineString feature."""
        # GeoJSON is lng/lat while route paths are lat/lng
        line = LineString([(lng, lat) for lat, lng in route.route_path])
        feature = {
            'destination_id': destination.id if destination else None,
            'destination': destination.name if destination else None,
            'provider': route.provider,
            'approximate': route.approximate,
            'distance_km': round(route.distance_km, 3),
            'driving_min': route.driving_minutes,
            'walking_min': route.walking_minutes,
            'geometry': line,
        }
        self.route_gdf = gpd.GeoDataFrame([feature], geometry='geometry', crs='EPSG:4326')
        logger.info(f"Prepared route with {len(route.route_path)} points for export")
        return self.route_gdf

    def export_locations_geojson(self, filename: str = "locations.geojson") -> str:
        if self.locations_gdf is None:
            raise ValueError("No locations data prepared")
        return self._write_geojson(self.locations_gdf, filename)

    def export_route_geojson(self, filename: str = "route.geojson") -> str:
        if self.route_gdf is None:
            raise ValueError("No route data prepared")
        return self._write_geojson(self.route_gdf, filename)

    def _write_geojson(self, gdf: gpd.GeoDataFrame, filename: str) -> str:
        output_path = os.path.join(self.export_dir, filename)
        if gdf.crs is None:
            gdf = gdf.set_crs(epsg=4326)
        gdf.to_file(output_path, driver='GeoJSON')
        logger.info(f"Exported {len(gdf)} features to {output_path}")
        return output_path

    def prepare_summary_csv(self, locations: List[Location],
                            events_by_location: Dict[str, List[Event]] = None) -> pd.DataFrame:
        """Per-type location and event counts, with a TOTAL row."""
        events_by_location = events_by_location or {}
        rows = [{
            'type': location.type,
            'locations': 1,
            'events': len(events_by_location.get(location.id, [])),
            'with_image': 1 if location.image else 0,
        } for location in locations]

        if rows:
            summary = pd.DataFrame(rows).groupby('type', as_index=False).sum()
        else:
            summary = pd.DataFrame(columns=['type', 'locations', 'events', 'with_image'])
        total = pd.DataFrame([{
            'type': 'TOTAL',
            'locations': int(summary['locations'].sum()) if len(summary) else 0,
            'events': int(summary['events'].sum()) if len(summary) else 0,
            'with_image': int(summary['with_image'].sum()) if len(summary) else 0,
        }])
        self.summary_df = pd.concat([summary, total], ignore_index=True)
        logger.info(f"Prepared summary for {len(locations)} locations")
        return self.summary_df

    def export_summary_csv(self, filename: str = "summary.csv") -> str:
        if self.summary_df is None:
            raise ValueError("No summary data prepared")
        output_path = os.path.join(self.export_dir, filename)
        self.summary_df.to_csv(output_path, index=False)
        logger.info(f"Exported summary to {output_path}")
        return output_path
