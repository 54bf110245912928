"""Overlay engine: applies patch-repository scopes onto a package checkout."""
