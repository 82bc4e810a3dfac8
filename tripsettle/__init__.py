"""
TripSettle - collaborative trip planning with deterministic debt settlement.
"""

__version__ = "1.0.0"
