"""Builders mapping a DexServer to the manifests of its downstream objects."""
