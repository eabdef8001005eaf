"""
OSC Server for GAN robot control.

Provides an OSC interface for driving the GAN cube robot over Bluetooth,
so moves and scrambles can be triggered from tools like TouchDesigner,
Max/MSP, Processing, and more.
"""

from .server import RobotOSCServer

__all__ = ["RobotOSCServer"]
