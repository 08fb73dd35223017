"""Claim audio recordings from a directory and transcribe them with the whisper CLI."""

__all__ = [
    "cli",
    "config",
    "dirqueue",
    "errors",
    "paths",
    "service",
    "transcribe",
    "watcher",
]
