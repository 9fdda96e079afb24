"""GeoBeam: OpenStreetMap and elevation data to BeamNG map mods."""

__version__ = "0.1.0"
