"""Observability package bootstrap."""

from __future__ import annotations

from aviato.obs import logging as obs_logging

_initialised = False


def init():
	"""Install the JSON log handler once and return the package logger."""
	global _initialised
	if not _initialised:
		obs_logging.configure_logging()
		_initialised = True
	return obs_logging.get_logger()


__all__ = ["init"]
