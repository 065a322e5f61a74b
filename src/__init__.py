#!/usr/bin/env -S python3 -B -u
"""
routex - Route Table Semantics Engine

Interprets shorthand destinations, classifies gateways, builds route(8)
commands and reconciles routes hidden from the standard listing.
"""

__version__ = '1.0.0'
__author__ = 'RouteX'
__license__ = 'MIT'

# Package metadata
__all__ = [
    'core',
    'executors',
]
