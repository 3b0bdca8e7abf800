#! /usr/bin/env python
# vim: expandtab shiftwidth=4 softtabstop=4 tabstop=17 filetype=python :
"""Driver for the easy-rsa CA toolchain.

Every subcommand runs in batch mode with the easy-rsa directory as working
directory. A non-zero exit is raised as ExternalToolError and never retried;
the CA state has to be inspected by a human after a partial failure."""

import logging
import os
import subprocess

from .errors import ExternalToolError
from .locator import validate_name

logger = logging.getLogger(__name__)


class EasyRSA(object):
    def __init__(self, workdir, command="./easyrsa", passin=None, env=None):
        self.workdir = workdir
        self.command = command
        self.passin = passin
        self.env = env

    @classmethod
    def from_config(cls, config):
        return cls(
            config.easyrsa_dir,
            command=config.easyrsa_command,
            passin=config.easyrsa_passin,
        )

    def _environment(self):
        env = dict(os.environ if self.env is None else self.env)
        env["EASYRSA_BATCH"] = "1"
        if self.passin:
            env["EASYRSA_PASSIN"] = self.passin
        return env

    def run(self, subcommand, *args):
        """Runs one easy-rsa subcommand and returns its output."""
        cmd = [self.command, "--batch", subcommand] + list(args)
        logger.debug("Running '%s' in %s", " ".join(cmd), self.workdir)
        try:
            result = subprocess.run(
                cmd,
                cwd=self.workdir,
                env=self._environment(),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            raise ExternalToolError(subcommand, None, str(exc)) from exc

        if result.returncode != 0:
            logger.info("easyrsa %s output:\n%s", subcommand, result.stdout)
            raise ExternalToolError(subcommand, result.returncode, result.stdout)
        logger.debug("easyrsa %s output:\n%s", subcommand, result.stdout)
        return result.stdout

    def gen_req(self, name):
        """Generate a key and certificate request without passphrase"""
        return self.run("gen-req", validate_name(name), "nopass")

    def sign_req(self, name):
        return self.run("sign-req", "client", validate_name(name))

    def revoke(self, name):
        return self.run("revoke", validate_name(name))

    def gen_crl(self):
        return self.run("gen-crl")
