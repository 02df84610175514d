"""
Core module - data models and shared infrastructure.

This module contains:
- models: User and Post records
- result: Ok/Err decision results
- utils: Shared utility functions

Submodules are imported directly (bulletin.core.models imports the role
hierarchy, which the auth package in turn builds on).
"""
