"""
Test package for the boiling-point monitor.
"""
