"""Bulletin - a content publishing API with role and ownership based authorization."""

__version__ = "0.1.0"
