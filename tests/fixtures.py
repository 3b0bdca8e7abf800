#! /usr/bin/env python
# vim: expandtab shiftwidth=4 softtabstop=4 tabstop=17 filetype=python :
import datetime
import os

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from ovpnmgr.errors import ExternalToolError

BASE = "BASE"
TAKEY = "TAKEY"
CACERT = "CACERT"
CLIENTCERT = "CLIENTCERT"
CLIENTKEY = "CLIENTKEY"

NOW = datetime.datetime(2026, 10, 17, 9, 30, 15)


def write(path, content):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wt") as f:
        f.write(content)


def read(path):
    with open(path, "rt") as f:
        return f.read()


class FakeEasyRSA(object):
    """Stands in for easy-rsa: keeps the CA state in memory and materialises
    the issued key and certificate files where the real tool puts them."""

    def __init__(self, config, fail_on=()):
        self.config = config
        self.fail_on = set(fail_on)
        self.calls = []
        self.revoked = []
        self.crl_count = 0

    def _call(self, *call):
        self.calls.append(call)
        if call[0] in self.fail_on:
            raise ExternalToolError(call[0], 1, "simulated failure")

    def _key(self, name):
        return os.path.join(self.config.pki_dir, "private", name + ".key")

    def _cert(self, name):
        return os.path.join(self.config.pki_dir, "issued", name + ".crt")

    def gen_req(self, name):
        self._call("gen-req", name)
        if os.path.exists(self._key(name)):
            raise ExternalToolError("gen-req", 1, "Request file already exists")
        write(self._key(name), CLIENTKEY)

    def sign_req(self, name):
        self._call("sign-req", name)
        write(self._cert(name), CLIENTCERT)

    def revoke(self, name):
        self._call("revoke", name)
        if not os.path.exists(self._cert(name)):
            raise ExternalToolError("revoke", 1, "Unable to revoke")
        self.revoked.append(name)

    def gen_crl(self):
        self._call("gen-crl")
        self.crl_count += 1
        write(self.config.crl_path, "CRL {}\n".format(" ".join(self.revoked)))


def make_certificate(commonname, not_after):
    """Self-signed PEM certificate, the signer doesn't matter for reading"""
    key = ec.generate_private_key(ec.SECP256R1())
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, commonname)])
    cert = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_after - datetime.timedelta(days=365))
        .not_valid_after(not_after)
        .sign(key, hashes.SHA256())
    )
    return cert, cert.public_bytes(serialization.Encoding.PEM)
