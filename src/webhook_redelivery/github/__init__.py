"""
Module: github
Description: GitHub REST API access for webhooks, deliveries and variables.
"""

from .client import GitHubClient

__all__ = ["GitHubClient"]
