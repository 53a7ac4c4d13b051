"""
Camwatch motion alert pipeline.

Samples camera frames, measures change between consecutive frames, decides
when that change is worth reporting and manages the resulting alerts
through a short acknowledge/investigate/dismiss lifecycle.

This package provides:
- Data models for pixel buffers, motion readings and alerts
- Frame-difference motion estimation with a per-camera cooldown gate
- Alert lifecycle management with permission-gated transitions
- Notification and sound-cue dispatch
- Configuration management
"""

__version__ = "0.1.0"
