"""Raw meteorology ingestion and near-surface air conversions."""

from .atmosphere import air_density, pressure_from_elevation, rh_to_vpd, vpd_to_rh
from .reader import read_meteo, write_meteo

__all__ = ["read_meteo", "write_meteo", "rh_to_vpd", "vpd_to_rh", "pressure_from_elevation", "air_density"]
