"""Driving law, command files, serial output, run recording and a daytime server for a LiDAR race car."""

__version__ = "0.1.0"