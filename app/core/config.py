"""
Runtime configuration for the growth simulation service.

Values come from environment variables so deployments can point the
registry at a different crop table without code changes.
"""
import os

DATA_DIR = os.path.join(os.path.dirname(__file__), "..", "data")

CROP_PROFILES_PATH = os.environ.get(
    "GROWTH_SIM_CROP_PROFILES_PATH",
    os.path.join(DATA_DIR, "crop_profiles.json"),
)

CROP_CATALOG_PATH = os.environ.get(
    "GROWTH_SIM_CROP_CATALOG_PATH",
    os.path.join(DATA_DIR, "crop_catalog.json"),
)

LOG_LEVEL = os.environ.get("GROWTH_SIM_LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("GROWTH_SIM_CORS_ORIGINS", "*").split(",")
    if origin.strip()
]
