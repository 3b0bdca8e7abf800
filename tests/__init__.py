#! /usr/bin/env python
# vim: expandtab shiftwidth=4 softtabstop=4 tabstop=17 filetype=python :
import os
import tempfile
import unittest

from ovpnmgr.config import ProfileConfig
from ovpnmgr.manager import ProfileManager

from . import fixtures


class ProfileTestCase(unittest.TestCase):
    """Builds an install root in a temporary directory with the base
    configuration, tls-auth key and CA certificate in place."""

    def setUp(self):
        super(ProfileTestCase, self).setUp()
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.root = tmpdir.name

        self.config = ProfileConfig(self.root)
        fixtures.write(self.config.base_config, fixtures.BASE)
        fixtures.write(self.config.tls_auth_key, fixtures.TAKEY)
        fixtures.write(os.path.join(self.config.pki_dir, "ca.crt"), fixtures.CACERT)

        self.ca = fixtures.FakeEasyRSA(self.config)
        self.manager = ProfileManager(
            self.config, self.ca, now=lambda: fixtures.NOW
        )

    def profile_path(self, name):
        return os.path.join(self.config.clients_dir, name + ".ovpn")

    def issue(self, name):
        """Issue key and certificate without writing a profile"""
        self.ca.gen_req(name)
        self.ca.sign_req(name)
        self.ca.calls = []
