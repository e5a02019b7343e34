"""
Ad ROI Calculator — consistent return-on-spend metrics across reporting windows.

Architecture: Parse → Validate → Divide (tri-state) → Compose → Format
Philosophy:  Every ratio has exactly one division rule. Nothing in the engine raises.
"""

__version__ = "1.0.0"
