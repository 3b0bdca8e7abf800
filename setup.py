from setuptools import setup, find_packages

requires = [
    "pyramid",
    "plaster",
    "plaster_pastedeploy",
    "cryptography >= 38",
    "pyOpenSSL >= 22.0.0",
    "python-dateutil",
    # Transient dependency from pyramid->webob,
    # should be fixed in a later release of webob
    "legacy-cgi; python_version >= '3.13'"
]

setup(
    name="ovpnmgr",
    version="1.0.0",
    python_requires=">=3.7",
    description="ovpnmgr",
    long_description="""
ovpnmgr issues, regenerates and revokes OpenVPN client profiles on top of an
easy-rsa certificate authority.

It drives easy-rsa to create and revoke client key pairs, and writes one
self-contained .ovpn profile per client by appending the tls-auth key, the CA
certificate and the client certificate and key inline to a base
configuration. The clients directory is the list of who currently has
access: a profile exists exactly for the clients that were issued and not
revoked. Revoked certificates and keys are archived next to the originals,
and the CRL is regenerated on every revoke.
      """,
    classifiers=[
        "Programming Language :: Python",
        "Environment :: Console",
        "Topic :: System :: Networking",
        "Topic :: System :: Systems Administration",
    ],
    keywords="openvpn easy-rsa certificates x509 ca crl vpn profile",
    packages=find_packages(exclude=["tests"]),
    include_package_data=True,
    zip_safe=False,
    test_suite="tests",
    install_requires=requires,
    entry_points="""\
      [console_scripts]
      ovpnmgr = ovpnmgr.scripts.tool:main
      """,
)
