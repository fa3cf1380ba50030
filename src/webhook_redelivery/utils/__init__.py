"""
Module: utils
Description: Shared helpers for logging and metrics.
"""
