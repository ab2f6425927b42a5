"""Lifecycle core: status store, path resolver, filename codec and engine."""
