#! /usr/bin/env python
# vim: expandtab shiftwidth=4 softtabstop=4 tabstop=17 filetype=python :
"""Builds client .ovpn profiles out of the base configuration and the inline
key material.

A profile is the base configuration followed by four inline blocks, always in
the order tls-auth, ca, cert, key:

    ##### BEGIN /etc/openvpn/ta.key
    <tls-auth>
    ...
    </tls-auth>

Profiles are written to a temporary file in the clients directory and then
renamed over the old one, so nobody ever reads half a profile."""

import datetime
import logging
import os
import tempfile

from .errors import MissingDependencyError, UnreadableFileError

logger = logging.getLogger(__name__)

PROFILE_MODE = 0o600
CLIENTS_DIR_MODE = 0o700
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
ENCODING = "utf-8"


def read_file(path):
    try:
        with open(path, "rt", encoding=ENCODING) as f:
            return f.read()
    except UnicodeDecodeError as exc:
        raise UnreadableFileError(
            f"{path} is not {ENCODING} text ({exc.reason} at byte {exc.start})"
        ) from exc


def inline_block(tag, path):
    """The BEGIN marker and the <tag> wrapped content of path"""
    content = read_file(path)
    if not content.endswith("\n"):
        content += "\n"
    return f"##### BEGIN {path}\n<{tag}>\n{content}</{tag}>\n"


def write_atomic(path, content, mode=PROFILE_MODE):
    """Write content to a sibling temporary file and rename it over path.
    On any failure the temporary file is removed and path is left as it
    was."""
    dirname, basename = os.path.split(path)
    fd, tmp_path = tempfile.mkstemp(
        prefix="." + basename + ".", suffix=".tmp", dir=dirname
    )
    try:
        with os.fdopen(fd, "wt", encoding=ENCODING) as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except Exception:
        os.unlink(tmp_path)
        raise


class ProfileAssembler(object):
    def __init__(self, config, locator, now=datetime.datetime.now):
        self.config = config
        self.locator = locator
        self.now = now

    def _dependencies(self):
        for what, path in (
            ("Base configuration", self.config.base_config),
            ("TLS auth key", self.config.tls_auth_key),
        ):
            if not os.path.isfile(path):
                raise MissingDependencyError(f"{what} {path} not found")

    def render(self, name):
        """Returns the full profile text for a client."""
        self._dependencies()
        blocks = (
            ("tls-auth", self.config.tls_auth_key),
            ("ca", self.locator.ca_cert()),
            ("cert", self.locator.client_cert(name)),
            ("key", self.locator.client_key(name)),
        )

        base = read_file(self.config.base_config)
        if base and not base.endswith("\n"):
            base += "\n"

        parts = [
            f"# OpenVPN profile for {name}\n",
            f"# Created {self.now().strftime(TIMESTAMP_FORMAT)}\n",
            base,
        ]
        parts.extend(inline_block(tag, path) for tag, path in blocks)
        return "".join(parts)

    def assemble(self, name):
        """Writes the profile for name, replacing any existing one, and
        returns its path."""
        content = self.render(name)
        path = self.locator.profile(name)
        os.makedirs(self.config.clients_dir, mode=CLIENTS_DIR_MODE, exist_ok=True)
        write_atomic(path, content)
        logger.info("Wrote profile %s", path)
        return path
