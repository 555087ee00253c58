"""
Demo data generator for csftracker.

Provides sample controls for quick demos and evaluation.

Usage:
    from csftracker.demo import generate_demo_data

    # Load 50 sample controls
    generate_demo_data(profile="growing", seed=42)

    # Then look at the results
    csftracker stats
"""

from csftracker.demo.generator import (
    DemoConfig,
    DemoGenerator,
    DemoProfile,
    generate_demo_data,
)

__all__ = [
    "DemoConfig",
    "DemoGenerator",
    "DemoProfile",
    "generate_demo_data",
]
