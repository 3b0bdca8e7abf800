#! /usr/bin/env python
# vim: expandtab shiftwidth=4 softtabstop=4 tabstop=17 filetype=python :
import OpenSSL.crypto as _crypto
import dateutil.parser
from pyramid.decorator import reify as _reify


class ClientCert(object):
    """Read-only view of an issued client certificate"""

    def __init__(self, pem):
        try:
            self.cert = _crypto.load_certificate(_crypto.FILETYPE_PEM, pem)
        except _crypto.Error as exc:
            raise ValueError("Not a PEM encoded certificate") from exc

    @classmethod
    def from_file(cls, certfile):
        with open(certfile, "rb") as f:
            pem = f.read()
        return cls(pem)

    @_reify
    def commonname(self):
        components = dict(self.cert.get_subject().get_components())
        cn = components.get(b"CN")
        return cn.decode("utf8") if cn is not None else None

    @_reify
    def not_after(self):
        ts = self.cert.get_notAfter()
        if not ts:
            return None
        return dateutil.parser.parse(ts.decode("ascii"))

    @_reify
    def fingerprint(self):
        return self.cert.digest("sha256").decode("ascii")
