"""
Heading fusion examples.

Demonstrates the orientation fusion engine on a simulated handheld session:
    - Slow turns with the phone held flat (compass mode, Euler smoothing)
    - Tilting towards vertical (quaternion submode, stability tiers)
    - Fast turns (instability debouncing)
    - Upright camera use (AR mode, gyro dead reckoning with drift correction)

Examples:
    - example_heading_fusion.py: Raw vs fused heading, confidence, submode
"""

__all__ = []
