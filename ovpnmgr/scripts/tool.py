#!/bin/env python3
# vim: expandtab shiftwidth=4 softtabstop=4 tabstop=17 filetype=python :
"""Issue, regenerate and revoke OpenVPN client profiles.

  create CLIENT_NAME         issue a certificate and write clients/CLIENT_NAME.ovpn
  update CLIENT_NAME         rewrite the profile of an existing client
  update -all                rewrite every existing profile
  revoke CLIENT_NAME         revoke the certificate, archive it, drop the profile
  revoke -none               only regenerate the CRL
  list                       show clients with a profile and their certificate

The CRL is regenerated on every revoke, including revoke -none."""

import argparse
import logging
import os
import sys

from ovpnmgr import config
from ovpnmgr.config import setup_logging
from ovpnmgr.easyrsa import EasyRSA
from ovpnmgr.errors import ProfileError
from ovpnmgr.manager import ProfileManager

LOG = logging.getLogger(name="ovpnmgr.tool")

UMASK = 0o077

LAYOUT = """\
filesystem layout, relative to --root:
  easy-rsa/easyrsa3                   easy-rsa installation, run from here
  easy-rsa/easyrsa3/pki/ca.crt        CA certificate
  easy-rsa/easyrsa3/pki/issued/ID.crt client certificate
  easy-rsa/easyrsa3/pki/private/ID.key client private key
  BASE.ovpn                           base client configuration
  ta.key                              tls-auth key embedded in every profile
  clients/ID.ovpn                     generated client profiles

environment:
  OVPNMGR_INI, OVPNMGR_ROOT, OVPNMGR_EASYRSA_DIR, OVPNMGR_LOG_LEVEL, ...
"""


def cmdline(argv=None):
    """Parse commandline."""
    parser = argparse.ArgumentParser(
        prog="ovpnmgr",
        description=__doc__,
        epilog=LAYOUT,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    config.add_inifile_argument(parser)
    config.add_verbosity_argument(parser)
    config.add_root_argument(parser)
    config.add_easyrsa_arguments(parser)

    actions = parser.add_subparsers(dest="action", metavar="ACTION")
    actions.required = True

    create = actions.add_parser("create", help="Issue a new client profile")
    create.add_argument("client", metavar="CLIENT_NAME")

    update = actions.add_parser("update", help="Regenerate client profiles")
    update.add_argument("client", metavar="CLIENT_NAME", nargs="?")
    update.add_argument(
        "-all",
        dest="all",
        help="Regenerate every existing profile",
        action="store_true",
    )

    revoke = actions.add_parser("revoke", help="Revoke a client")
    revoke.add_argument("client", metavar="CLIENT_NAME", nargs="?")
    revoke.add_argument(
        "-none",
        dest="none",
        help="Revoke nothing, only regenerate the CRL",
        action="store_true",
    )

    actions.add_parser("list", help="List clients that have a profile")

    args = parser.parse_args(argv)

    # argparse can't express "exactly one of a positional and a flag"
    if args.action == "update" and (args.client is None) == (not args.all):
        update.error("expected either CLIENT_NAME or -all")
    if args.action == "revoke" and (args.client is None) == (not args.none):
        revoke.error("expected either CLIENT_NAME or -none")
    return args


def error_out(message, exc=None):
    """Print error message and exit with failure code."""
    if exc is not None:
        message = f"{message}: {exc}"
    LOG.error(message)
    sys.exit(1)


def do_create(manager, args):
    path = manager.create(args.client)
    print(f"Created profile {path}")


def do_update(manager, args):
    if args.all:
        paths = manager.update_all()
    else:
        paths = [manager.update(args.client)]
    for path in paths:
        print(f"Updated profile {path}")


def do_revoke(manager, args):
    client = None if args.none else args.client
    manager.revoke(client)
    if client is not None:
        print(f"Revoked {client}")
    print("Regenerated CRL")


def do_list(manager, args):
    for name, cert in manager.clients():
        if cert is None:
            print(" ".join((name, "----------", "----------")))
        else:
            print(" ".join((name, str(cert.not_after), cert.fingerprint)))


ACTIONS = {
    "create": do_create,
    "update": do_update,
    "revoke": do_revoke,
    "list": do_list,
}


def main(argv=None):
    """Entrypoint of application."""
    args = cmdline(argv)
    # profiles carry private keys
    os.umask(UMASK)

    try:
        setup_logging(args.inifile)
        config.configure_log_level(args)
        settings = config.get_settings(args.inifile)
        profile_config = config.get_profile_config(args, settings)
    except ValueError as error:
        error_out("Error reading configuration", exc=error)
    LOG.debug("Using %r", profile_config)

    manager = ProfileManager(profile_config, EasyRSA.from_config(profile_config))
    try:
        ACTIONS[args.action](manager, args)
    except ProfileError as error:
        error_out(str(error))
    except OSError as error:
        error_out("Filesystem error", exc=error)


if __name__ == "__main__":
    main()
