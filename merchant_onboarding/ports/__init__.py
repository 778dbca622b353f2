"""Ports - abstract interfaces for external collaborators."""
