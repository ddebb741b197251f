"""Utility helpers for the Cloud Resource Inspector."""
