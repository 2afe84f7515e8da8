"""Tubely: video upload API with fast-start remuxing and object storage."""

__version__ = "0.1.0"
