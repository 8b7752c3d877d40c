import logging
import os

import folium
import matplotlib.pyplot as plt
import numpy as np
from folium import plugins

from config import CONFIG


class PlacementMapRenderer:
    """Interactive and static maps of a placement run"""
    def __init__(self, output_dir=None):
        self.output_dir = output_dir or CONFIG["OUTPUT_DIR"]

    def render(self, region, demand, existing, assessments, coverage_radius_km):
        logging.info("=" * 80)
        logging.info("PHASE 5: VISUALIZATION")
        logging.info("=" * 80)

        os.makedirs(self.output_dir, exist_ok=True)
        map_path = self._create_interactive_map(region, demand, existing, assessments, coverage_radius_km)
        overview_path = self._create_overview_plot(region, demand, existing, assessments)

        logging.info(f"   All visualizations saved to {self.output_dir}/")
        return map_path, overview_path

    def _create_interactive_map(self, region, demand, existing, assessments, coverage_radius_km):
        logging.info("  Creating interactive map...")

        m = folium.Map(
            location=region.centroid.as_latlon(),
            zoom_start=13,
            tiles='CartoDB positron'
        )

        # Layer 1: Region boundary
        folium.Polygon(
            locations=[p.as_latlon() for p in region.boundary],
            color='#34495e',
            weight=2,
            fill=False,
            tooltip=region.name
        ).add_to(m)

        # Layer 2: Weighted demand
        if demand:
            max_w = max(p.weighted_share for p in demand) or 1.0
            heat_data = [[p.location.lat, p.location.lon, p.weighted_share / max_w] for p in demand]
            plugins.HeatMap(
                heat_data,
                name='Weighted Demand',
                radius=15,
                blur=20,
                gradient={0.0: 'blue', 0.5: 'yellow', 1.0: 'red'}
            ).add_to(m)

        # Layer 3: Existing schools
        existing_layer = folium.FeatureGroup(name='Existing Schools')
        for f in existing:
            folium.CircleMarker(
                location=f.location.as_latlon(),
                radius=4,
                color='#7f8c8d',
                fill=True,
                fillOpacity=0.8,
                tooltip=f.label
            ).add_to(existing_layer)
        existing_layer.add_to(m)

        # Layer 4: New schools
        new_layer = folium.FeatureGroup(name='New Schools')
        for a in assessments:
            location = (a.coords[1], a.coords[0])
            color = 'red' if a.spacing_violations else 'darkgreen'
            popup_html = f"""
            <div style='font-family: Arial; width: 260px;'>
                <h4 style='margin: 0 0 6px 0; color: {color};'>New School #{a.site_id}</h4>
                <p style='margin: 2px 0;'><b>Score:</b> {a.score:.2f}</p>
                <p style='margin: 2px 0;'><b>Children within {coverage_radius_km} km:</b> ~{a.demand_served:,.0f}</p>
                <p style='margin: 2px 0;'><b>From center:</b> {a.distance_to_center_km:.2f} km</p>
                <ul style='margin: 4px 0; padding-left: 18px; font-size: 11px;'>
                    {''.join(f"<li>{v}</li>" for v in a.spacing_violations)}
                </ul>
            </div>
            """
            folium.Marker(
                location=location,
                popup=folium.Popup(popup_html, max_width=300),
                tooltip=f"New School #{a.site_id}",
                icon=folium.Icon(color=color, icon='graduation-cap', prefix='fa')
            ).add_to(new_layer)

            folium.Circle(
                location=location,
                radius=coverage_radius_km * 1000,
                color=color,
                fill=True,
                fillOpacity=0.08,
                weight=2,
                dashArray='5, 5'
            ).add_to(new_layer)
        new_layer.add_to(m)

        folium.LayerControl().add_to(m)

        map_path = os.path.join(self.output_dir, 'placement_map.html')
        m.save(map_path)
        logging.info(f"     Map: {map_path}")
        return map_path

    def _create_overview_plot(self, region, demand, existing, assessments):
        logging.info("  Creating placement overview...")

        fig, ax = plt.subplots(figsize=(10, 10))

        ring = np.array([p.as_tuple() for p in region.boundary] + [region.boundary[0].as_tuple()])
        ax.plot(ring[:, 0], ring[:, 1], color='#34495e', linewidth=1.5, label='Boundary')

        if demand:
            pts = np.array([p.location.as_tuple() for p in demand])
            weights = np.array([p.weighted_share for p in demand])
            sc = ax.scatter(pts[:, 0], pts[:, 1], c=weights, s=4, cmap='YlOrRd', alpha=0.6)
            fig.colorbar(sc, ax=ax, shrink=0.7, label='Weighted demand per point')

        if existing:
            ex = np.array([f.location.as_tuple() for f in existing])
            ax.scatter(ex[:, 0], ex[:, 1], marker='s', s=30, color='#7f8c8d', label='Existing schools')

        for a in assessments:
            ax.scatter(*a.coords, marker='*', s=250, color='#2ecc71', edgecolors='black', zorder=5)
            ax.annotate(f"#{a.site_id}", a.coords, xytext=(6, 6), textcoords='offset points', fontweight='bold')

        ax.scatter(*region.centroid.as_tuple(), marker='x', s=80, color='blue', label='Region center')
        ax.set_title(f"School Placement: {region.name}", fontweight='bold')
        ax.set_xlabel('Longitude')
        ax.set_ylabel('Latitude')
        ax.set_aspect('equal', adjustable='datalim')
        ax.legend(loc='upper right')
        ax.grid(alpha=0.3)

        plt.tight_layout()
        overview_path = os.path.join(self.output_dir, 'placement_overview.png')
        plt.savefig(overview_path, dpi=200, bbox_inches='tight')
        plt.close(fig)

        logging.info(f"     Overview: {overview_path}")
        return overview_path
