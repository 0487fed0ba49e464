"""
Core configuration, logging, exceptions and shared constants.
"""
