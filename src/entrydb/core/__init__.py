"""Ambient services: configuration, exceptions, error channel, logging, settings files."""
