"""Domain services: geocoding, upstream weather, composition and history."""
