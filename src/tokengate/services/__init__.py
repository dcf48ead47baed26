"""Service layer: refresh-token store and auth flows."""
