"""
HTTP API for the image handler.
"""
