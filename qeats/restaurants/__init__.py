"""
Restaurant discovery engine.

Responsibilities:
- Decide which restaurants are open and within serving radius of a point.
- Serve proximity lookups through a geohash-bucketed cache-aside layer.
- Fan text searches out over name, cuisine and menu predicates, then merge.
- Return deduplicated restaurant projections ready for API serialisation.
"""
