#! /usr/bin/env python
# vim: expandtab shiftwidth=4 softtabstop=4 tabstop=17 filetype=python :
"""ovpnmgr.config is a helper library that standardizes and collects the logic
used to locate the CA, the profile sources and the clients directory"""

import argparse
import logging
import os
from logging.config import dictConfig

import plaster
import pyramid.paster as paster

SETTINGS_SECTION = "ovpnmgr"
DEFAULT_ROOT = "/etc/openvpn"
DEFAULT_EASYRSA_COMMAND = "./easyrsa"

LOG_LEVEL = {
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}

DEFAULT_LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "generic": {
            "format": "ovpnmgr: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
            "level": "NOTSET",
            "formatter": "generic",
        },
    },
    "loggers": {
        "": {  # root logger
            "handlers": ["console"],
            "level": "WARNING",
        },
    },
}


class ProfileConfig(object):
    """Every location and setting the components need, resolved once at
    startup and handed to each of them."""

    def __init__(
        self,
        root,
        easyrsa_dir=None,
        base_config=None,
        tls_auth_key=None,
        clients_dir=None,
        easyrsa_command=DEFAULT_EASYRSA_COMMAND,
        easyrsa_passin=None,
        crl_copy_to=None,
    ):
        self.root = root
        self.easyrsa_dir = easyrsa_dir or os.path.join(root, "easy-rsa", "easyrsa3")
        self.base_config = base_config or os.path.join(root, "BASE.ovpn")
        self.tls_auth_key = tls_auth_key or os.path.join(root, "ta.key")
        self.clients_dir = clients_dir or os.path.join(root, "clients")
        self.easyrsa_command = easyrsa_command
        self.easyrsa_passin = easyrsa_passin
        self.crl_copy_to = crl_copy_to

    @property
    def pki_dir(self):
        return os.path.join(self.easyrsa_dir, "pki")

    @property
    def crl_path(self):
        return os.path.join(self.pki_dir, "crl.pem")

    def __repr__(self):
        return "<{} root={!r} easyrsa_dir={!r} clients_dir={!r}>".format(
            self.__class__.__name__, self.root, self.easyrsa_dir, self.clients_dir
        )


def add_inifile_argument(parser, env=None):
    """Adds an option to the parser for the config-file, defaults to
    OVPNMGR_INI in the environment"""
    if env is None:
        env = os.environ
    default_ini = env.get("OVPNMGR_INI")

    parser.add_argument(
        "-c",
        "--config",
        help="Path to a specific .ini-file to use as config",
        dest="inifile",
        default=default_ini,
        type=str,
    )


def add_verbosity_argument(parser):
    """Adds an argument for verbosity to a given parser, counting the amount of
    'v's and 'verbose' on the commandline"""
    parser.add_argument(
        "-v",
        "--verbose",
        help="Verbosity of root logger, increasing the more 'v's are added",
        action="count",
        default=0,
    )


def add_root_argument(parser):
    """Adds an argument for the install root everything else is derived
    from"""
    parser.add_argument(
        "--root",
        help=f"Install root holding easy-rsa, BASE.ovpn, ta.key and clients/"
        f" (default {DEFAULT_ROOT})",
        type=str,
    )


def add_easyrsa_arguments(parser):
    """Adds the easy-rsa directory and command arguments to a given parser"""
    parser.add_argument(
        "--easyrsa-dir",
        help="Path to the easy-rsa working directory",
        type=str,
    )
    parser.add_argument(
        "--easyrsa-command",
        help=f"easy-rsa executable, relative to its directory"
        f" (default {DEFAULT_EASYRSA_COMMAND})",
        type=str,
    )


def _get_config_value(
    arguments: argparse.Namespace,
    variable,
    required=False,
    setting_name=None,
    settings=None,
    default=None,
    env=None,
):
    """Returns what value to use for a given config variable, prefer argument >
    env-variable > config-file, if a value cant be found and default is not
    None, default is returned"""
    result = None
    if setting_name is None:
        setting_name = variable
    if settings is not None:
        result = settings.get(setting_name, result)

    if env is None:
        env = os.environ
    env_var = "OVPNMGR_" + variable.upper().replace("-", "_")
    result = env.get(env_var, result)

    arg_value = getattr(arguments, variable, result)
    result = arg_value if arg_value is not None else result

    if result is None:
        result = default

    if required and result is None:
        raise ValueError(
            f"No {variable} could be found as either an argument,"
            f" in the environment variable {env_var} or in the config file",
            variable,
            env_var,
        )
    return result


def get_profile_config(arguments=None, settings=None, env=None):
    """Builds the ProfileConfig, each value preferring argument >
    env-variable > config-file > default"""
    if arguments is None:
        arguments = argparse.Namespace()

    def value(variable, setting_name=None, default=None):
        return _get_config_value(
            arguments,
            variable,
            setting_name=setting_name,
            settings=settings,
            default=default,
            env=env,
        )

    root = value("root", default=DEFAULT_ROOT)
    return ProfileConfig(
        root,
        easyrsa_dir=value("easyrsa_dir", setting_name="easyrsa.dir"),
        base_config=value("base_config"),
        tls_auth_key=value("tls_auth_key"),
        clients_dir=value("clients_dir"),
        easyrsa_command=value(
            "easyrsa_command",
            setting_name="easyrsa.command",
            default=DEFAULT_EASYRSA_COMMAND,
        ),
        easyrsa_passin=value("easyrsa_passin", setting_name="easyrsa.passin"),
        crl_copy_to=value("crl_copy_to", setting_name="crl.copy_to"),
    )


def get_log_level(argument_level, logger=None, env=None):
    """Calculates the highest verbosity(here inverted) from the argument,
    environment and root, capping it to between logging.DEBUG(10)-logging.ERROR(40),
    returning the log level"""

    if env is None:
        env = os.environ
    env_level_name = env.get("OVPNMGR_LOG_LEVEL", "ERROR").upper()
    env_level = LOG_LEVEL.get(env_level_name, logging.ERROR)

    if logger is None:
        logger = logging.getLogger()
    current_level = logger.level

    argument_verbosity = logging.ERROR - argument_level * 10  # level steps are 10
    verbosity = min(argument_verbosity, env_level, current_level)
    log_level = (
        verbosity if logging.DEBUG <= verbosity <= logging.ERROR else logging.ERROR
    )
    return log_level


def configure_log_level(arguments: argparse.Namespace, logger=None):
    """Sets the root loggers level to the highest verbosity from the argument,
    environment and config-file"""
    log_level = get_log_level(arguments.verbose)
    if logger is None:
        logger = logging.getLogger()
    logger.setLevel(log_level)


def setup_logging(config_path=None):
    """wrapper for pyramid.paster.setup_logging using the file at config_path
    when it carries logging sections, otherwise use the dictionary
    DEFAULT_LOGGING_CONFIG. A broken logging section falls back to the
    default and raises ValueError"""
    if not config_path or not os.path.isfile(config_path):
        dictConfig(DEFAULT_LOGGING_CONFIG)
        return
    try:
        if "loggers" in plaster.get_sections(config_path):
            paster.setup_logging(config_path)
        else:
            dictConfig(DEFAULT_LOGGING_CONFIG)
    except Exception as exc:  # pylint:disable=broad-except
        dictConfig(DEFAULT_LOGGING_CONFIG)
        raise ValueError(
            f"Broken logging configuration in {config_path}: {exc!r}"
        ) from exc


def get_settings(config_path):
    """Returns the [ovpnmgr] section of the config file as a dict, or an empty
    dict if no config_path is given"""
    if not config_path:
        return {}
    if not os.path.isfile(config_path):
        raise ValueError(f"Config file {config_path} does not exist")
    return dict(plaster.get_settings(config_path, SETTINGS_SECTION))
