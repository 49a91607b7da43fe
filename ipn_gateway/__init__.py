"""Serverless endpoints relaying payment notifications and form submissions."""

__version__ = "1.0.0"
