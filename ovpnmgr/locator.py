#! /usr/bin/env python
# vim: expandtab shiftwidth=4 softtabstop=4 tabstop=17 filetype=python :
"""Path resolution for the CA artifacts and the client profiles."""

import logging
import os

from .errors import InvalidNameError, NotFoundError

logger = logging.getLogger(__name__)

PROFILE_SUFFIX = ".ovpn"

_FORBIDDEN = ("/", "\\", "\0")


def validate_name(name):
    """Client names end up as path components, refuse anything that could
    escape the directory it is joined onto."""
    if not name:
        raise InvalidNameError("Client name must not be empty")
    if name in (".", ".."):
        raise InvalidNameError(f"Invalid client name {name!r}")
    if any(char in name for char in _FORBIDDEN):
        raise InvalidNameError(f"Client name {name!r} contains a path separator")
    if name.startswith("-"):
        raise InvalidNameError(f"Client name {name!r} must not start with '-'")
    return name


class FileLocator(object):
    def __init__(self, config):
        self.config = config

    def _existing(self, path, what):
        if not os.path.isfile(path):
            raise NotFoundError(f"{what} {path} not found")
        return path

    def ca_cert(self):
        path = os.path.join(self.config.pki_dir, "ca.crt")
        return self._existing(path, "CA certificate")

    def client_cert(self, name):
        filename = validate_name(name) + ".crt"
        path = os.path.join(self.config.pki_dir, "issued", filename)
        return self._existing(path, "Certificate")

    def client_key(self, name):
        filename = validate_name(name) + ".key"
        path = os.path.join(self.config.pki_dir, "private", filename)
        return self._existing(path, "Private key")

    def profile(self, name):
        """Path of the profile, whether or not it exists."""
        filename = validate_name(name) + PROFILE_SUFFIX
        return os.path.join(self.config.clients_dir, filename)

    def profile_exists(self, name):
        return os.path.isfile(self.profile(name))

    def profile_names(self):
        """Names of all clients that currently have a profile, sorted."""
        try:
            entries = os.listdir(self.config.clients_dir)
        except FileNotFoundError:
            logger.debug("Clients directory %s does not exist", self.config.clients_dir)
            return []

        names = []
        for entry in entries:
            # in-flight temporary files end in .tmp
            if not entry.endswith(PROFILE_SUFFIX):
                continue
            if not os.path.isfile(os.path.join(self.config.clients_dir, entry)):
                continue
            name = entry[: -len(PROFILE_SUFFIX)]
            try:
                validate_name(name)
            except InvalidNameError:
                logger.warning("Ignoring profile with invalid name %s", entry)
                continue
            names.append(name)
        return sorted(names)
