"""
Geospatial helpers.

Responsibilities:
- Quantise a (latitude, longitude) pair into a fixed-precision geohash bucket.
- Compute great-circle distances between two points.
"""
