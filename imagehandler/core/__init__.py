"""
Core modules for the image handler.

- session: fluent ImageSession API
- drivers: raster and deferred execution strategies
- geometry: placement and scaling policies
- image: header probing, decoding and encoding
"""
