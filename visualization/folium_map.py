"""Render the panel state as an interactive Folium map."""
import html
from typing import List

import folium
from loguru import logger

from core.map_panel import MapRoutingPanel, MarkerView
from models.map_entities import RouteInfo, YouthProfile
from services.overlay_service import event_status_color, format_event_date
from tools.marker_icons import MarkerIcon, temp_marker_icon, user_location_icon, youth_icon
from tools.popup_layout import popup_max_size


def _custom_icon(icon: MarkerIcon) -> folium.CustomIcon:
    return folium.CustomIcon(
        icon.data_uri,
        icon_size=icon.icon_size,
        icon_anchor=icon.icon_anchor,
        popup_anchor=icon.popup_anchor,
    )


class FoliumMapGenerator:
    def __init__(self, tiles: str = 'OpenStreetMap'):
        self.tiles = tiles

    def create_panel_map(self, panel: MapRoutingPanel) -> folium.Map:
        viewport = panel.viewport
        m = folium.Map(location=list(viewport.center), zoom_start=viewport.zoom, tiles=self.tiles)
        max_width, max_height = popup_max_size(viewport.width)
        self._popup_width = max_width
        self._popup_height = max_height

        markers = panel.marker_views()
        self._add_location_markers(m, markers)
        self._add_youth_markers(m, panel.overlays.youth)

        user = panel.tracker.user_location
        if user is not None:
            user_group = folium.FeatureGroup(name="📍 Your Location", show=True)
            lines = [f"Lat: {user.latitude:.6f}", f"Lng: {user.longitude:.6f}"]
            if user.accuracy:
                lines.append(f"Accuracy: ±{round(user.accuracy)}m")
                folium.Circle(
                    location=list(user.position),
                    radius=user.accuracy,
                    color='#10B981',
                    fill=True,
                    fill_opacity=0.1,
                ).add_to(user_group)
            folium.Marker(
                location=list(user.position),
                icon=_custom_icon(user_location_icon()),
                popup=folium.Popup("<br>".join(["<b>Your Location</b>"] + lines), max_width=max_width),
            ).add_to(user_group)
            user_group.add_to(m)

        if panel.show_route and panel.routes.route_info is not None:
            self._add_route(m, panel.routes.route_info)

        temp = panel.add_flow.temp_marker
        if temp is not None:
            folium.Marker(
                location=list(temp),
                icon=_custom_icon(temp_marker_icon()),
                popup="<b>New Location</b><br>Fill the form to add this location",
            ).add_to(m)

        self._add_legend(m, markers, len(panel.overlays.youth), panel.markers.edit_mode)
        folium.LayerControl(position='topright', collapsed=False, autoZIndex=True).add_to(m)

        logger.info(f"Created Folium map with {len(markers)} locations and {len(panel.overlays.youth)} youth members")
        return m

    def _add_location_markers(self, map_obj: folium.Map, markers: List[MarkerView]):
        group = folium.FeatureGroup(name=f"🏫 Locations ({len(markers)})", show=True)
        for view in markers:
            marker = folium.Marker(
                location=list(view.location.position),
                icon=_custom_icon(view.icon),
                draggable=view.draggable,
                popup=folium.Popup(self._location_popup(view), max_width=self._popup_width),
                tooltip="<br>".join(html.escape(line) for line in view.tooltip) if view.tooltip else view.location.name,
            )
            marker.add_to(group)
        group.add_to(map_obj)

    def _location_popup(self, view: MarkerView) -> str:
        location = view.location
        parts = [f"<div style=\"max-height:{self._popup_height}px;overflow-y:auto;\">",
                 f"<h4>{html.escape(location.name)}</h4>"]
        if location.image:
            parts.append(f'<img src="{html.escape(location.image)}" style="max-width:100%;border-radius:4px;"/>')
        if location.description:
            parts.append(f"<p>{html.escape(location.description)}</p>")
        if view.events:
            parts.append(f"<p><strong>📅 Events ({len(view.events)})</strong></p>")
            for event in view.events:
                color = event_status_color(event.status)
                parts.append(
                    f"<p><strong>{html.escape(event.title)}</strong> "
                    f"<span style=\"color:{color};\">{event.status.lower()}</span><br>"
                    f"<small>{format_event_date(event)}</small>"
                )
                if event.max_participants:
                    parts.append(f"<br><small>Max: {event.max_participants} participants</small>")
                parts.append("</p>")
        parts.append(f"<p><small>{location.type.lower()}</small></p>")
        if view.unsynced:
            parts.append('<p style="color:#DC2626;"><small>⚠️ Position not saved</small></p>')
        parts.append(f"<small>Lat: {location.latitude:.6f}, Lng: {location.longitude:.6f}</small></div>")
        return "".join(parts)

    def _add_youth_markers(self, map_obj: folium.Map, youth: List[YouthProfile]):
        if not youth:
            return
        icon = youth_icon()
        group = folium.FeatureGroup(name=f"👥 Youth Members ({len(youth)})", show=True)
        for profile in youth:
            lines = [f"<h4>{html.escape(profile.full_name)}</h4>", "<small>Youth Member</small>"]
            if profile.age is not None:
                lines.append(f"<p>{profile.age} years old, {html.escape(profile.sex or '')}</p>")
            if profile.status:
                lines.append(f"<p>Status: {html.escape(profile.status)}</p>")
            if profile.committee:
                lines.append(f"<p>Committee: {html.escape(profile.committee)}</p>")
            if profile.street_address or profile.barangay:
                address = ", ".join(p for p in (profile.street_address, profile.barangay) if p)
                lines.append(f"<p><strong>Address:</strong> {html.escape(address)}</p>")
            if profile.mobile_number:
                lines.append(f"<p><strong>Contact:</strong> {html.escape(profile.mobile_number)}</p>")
            folium.Marker(
                location=list(profile.position),
                icon=_custom_icon(icon),
                popup=folium.Popup("".join(lines), max_width=self._popup_width),
            ).add_to(group)
        group.add_to(map_obj)

    def _add_route(self, map_obj: folium.Map, route: RouteInfo):
        label = "Approximate route" if route.approximate else f"Route ({route.provider})"
        group = folium.FeatureGroup(name=f"🗺️ {label}", show=True)
        tooltip = f"{label}: {route.distance_label}, 🚗 {route.driving_label}, 🚶 {route.walking_label}"
        path = [list(point) for point in route.route_path]
        if route.approximate:
            # Synthesized path, drawn dashed so it is never mistaken for a road route
            folium.PolyLine(path, color='#6B7280', weight=5, opacity=0.8,
                            dash_array='5, 10', tooltip=tooltip).add_to(group)
        else:
            folium.PolyLine(path, color='#1E40AF', weight=8, opacity=0.3).add_to(group)
            folium.PolyLine(path, color='#3B82F6', weight=6, opacity=0.9, tooltip=tooltip).add_to(group)
        group.add_to(map_obj)

    def _add_legend(self, map_obj: folium.Map, markers: List[MarkerView], youth_count: int, edit_mode: bool):
        types = sorted({view.location.type for view in markers})
        rows = []
        for location_type in types:
            color = next(v.icon.color for v in markers if v.location.type == location_type)
            rows.append(f'<p><span style="color:{color};">●</span> {location_type.title()}</p>')
        if youth_count:
            rows.append(f'<p><span style="color:#6B7280;">●</span> Youth ({youth_count})</p>')
        rows.append('<p><span style="color:#ef4444;">●</span> Has events</p>')
        if edit_mode:
            rows.append('<p>🗑️ Drag markers to trash to delete</p>')

        legend_html = f'''
        <div style="position: fixed;
                    bottom: 50px; left: 50px; width: 200px; height: auto;
                    background-color: white; border:2px solid grey; z-index:9999;
                    font-size:13px; padding: 10px">
        <h4>🗺️ Map Legend</h4>
        {''.join(rows)}
        </div>
        '''
        map_obj.get_root().html.add_child(folium.Element(legend_html))

    def save_map(self, map_obj: folium.Map, output_path: str = "map.html") -> str:
        """Save map to HTML file."""
        map_obj.save(output_path)
        logger.info(f"Saved interactive map to {output_path}")
        return output_path

