#! /usr/bin/env python
# vim: expandtab shiftwidth=4 softtabstop=4 tabstop=17 filetype=python :
"""The create/update/revoke operations on client profiles.

A client moves through unissued -> active (profile exists) -> revoked.
None of the operations is transactional: a create that fails after signing
leaves an issued certificate without profile, and a failing update_all leaves
the clients before the failure regenerated. Both need a manual rerun."""

import datetime
import logging
import os

from .assembler import ProfileAssembler, read_file, write_atomic
from .certinfo import ClientCert
from .errors import AlreadyExistsError, NotFoundError
from .locator import FileLocator, validate_name

logger = logging.getLogger(__name__)

REVOKED_TIMESTAMP_FORMAT = "%Y%m%d%H%M"
CRL_MODE = 0o644


class ProfileManager(object):
    def __init__(
        self, config, ca, locator=None, assembler=None, now=datetime.datetime.now
    ):
        self.config = config
        self.ca = ca
        self.now = now
        self.locator = locator or FileLocator(config)
        self.assembler = assembler or ProfileAssembler(config, self.locator, now=now)

    def create(self, name):
        """Issue a certificate for a new client and write its profile."""
        validate_name(name)
        path = self.locator.profile(name)
        if os.path.exists(path):
            raise AlreadyExistsError(f"Profile {path} already exists")

        logger.info("Issuing certificate for %s", name)
        self.ca.gen_req(name)
        self.ca.sign_req(name)
        return self.assembler.assemble(name)

    def update(self, name):
        """Regenerate the profile of an issued client in place."""
        return self.assembler.assemble(name)

    def update_all(self):
        """Regenerate every existing profile. Clients with a certificate but
        no profile are not touched."""
        paths = []
        for name in self.locator.profile_names():
            paths.append(self.update(name))
        return paths

    def revoke(self, name=None):
        """Revoke a client, or with name None only regenerate the CRL."""
        if name is not None:
            self._revoke_client(name)
        logger.info("Regenerating CRL")
        self.ca.gen_crl()
        self.publish_crl()

    def _revoke_client(self, name):
        cert = self.locator.client_cert(name)
        key = self.locator.client_key(name)
        profile = self.locator.profile(name)

        suffix = ".revoked." + self.now().strftime(REVOKED_TIMESTAMP_FORMAT)
        archives = ((cert, cert + suffix), (key, key + suffix))
        for _, target in archives:
            if os.path.exists(target):
                raise AlreadyExistsError(f"Archive {target} already exists")

        logger.info("Revoking certificate for %s", name)
        self.ca.revoke(name)

        for source, target in archives:
            # easy-rsa >= 3.1 moves revoked material into pki/revoked itself
            if not os.path.exists(source):
                logger.warning("%s was already moved away by easy-rsa", source)
                continue
            os.rename(source, target)
            logger.info("Archived %s as %s", source, target)

        try:
            os.unlink(profile)
        except FileNotFoundError:
            logger.warning("%s had no profile %s", name, profile)
        else:
            logger.info("Removed profile %s", profile)

    def publish_crl(self):
        """Copy the CRL to where the VPN server reads it, if configured."""
        target = self.config.crl_copy_to
        if not target:
            return None
        source = self.config.crl_path
        if not os.path.isfile(source):
            raise NotFoundError(f"CRL {source} not found")
        write_atomic(target, read_file(source), mode=CRL_MODE)
        logger.info("Published CRL to %s", target)
        return target

    def clients(self):
        """(name, ClientCert or None) for every client with a profile"""
        result = []
        for name in self.locator.profile_names():
            try:
                cert = ClientCert.from_file(self.locator.client_cert(name))
            except (NotFoundError, ValueError) as exc:
                logger.warning("%s: %s", name, exc)
                cert = None
            result.append((name, cert))
        return result
