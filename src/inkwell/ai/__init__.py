"""Prediction backend adapters."""

from .client import ClientSettings, CompletionClient, build_prediction_backend

__all__ = ["ClientSettings", "CompletionClient", "build_prediction_backend"]
