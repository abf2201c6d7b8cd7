"""HTTP interface for the frame analyzer."""

from gd_analyzer.api.app import create_app

__all__ = ["create_app"]
