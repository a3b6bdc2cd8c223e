"""
Resilient interaction engine for Appium-driven mobile UI automation.
"""

__version__ = "0.1.0"
