#! /usr/bin/env python
# vim: expandtab shiftwidth=4 softtabstop=4 tabstop=17 filetype=python :
"""Exceptions raised by the ovpnmgr components. Only the command line
entry point catches these."""


class ProfileError(Exception):
    pass


class UsageError(ProfileError):
    pass


class InvalidNameError(UsageError):
    pass


class NotFoundError(ProfileError):
    pass


class MissingDependencyError(ProfileError):
    pass


class AlreadyExistsError(ProfileError):
    pass


class ExternalToolError(ProfileError):
    """The CA tool exited with a non-zero status"""

    def __init__(self, subcommand, returncode, output=""):
        self.subcommand = subcommand
        self.returncode = returncode
        self.output = output
        if returncode is None:
            message = f"easyrsa {subcommand} could not be run: {output}"
        else:
            message = f"easyrsa {subcommand} failed with exit status {returncode}"
        super().__init__(message)


class UnreadableFileError(ProfileError):
    pass
