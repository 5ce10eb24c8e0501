"""Interactive polygon annotation over raster images."""
