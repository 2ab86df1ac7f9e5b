"""Trusting the self-signed certificate of a locally running Syncthing GUI."""

import ipaddress
import os
import socket
import ssl
import sys
from enum import Enum
from pathlib import Path
from urllib.parse import urlsplit

HTTPS_CERT_NAME = "https-cert.pem"


class ExpectedTlsError(Enum):
    """Certificate validation errors that may be tolerated for the GUI certificate."""

    UNABLE_TO_GET_LOCAL_ISSUER_CERTIFICATE = "unable-to-get-local-issuer-certificate"
    UNABLE_TO_VERIFY_FIRST_CERTIFICATE = "unable-to-verify-first-certificate"
    SELF_SIGNED_CERTIFICATE = "self-signed-certificate"
    HOST_NAME_MISMATCH = "host-name-mismatch"


SELF_SIGNED_TLS_ERRORS = tuple(ExpectedTlsError)


def is_secure(url: str) -> bool:
    return urlsplit(url).scheme.lower().endswith("s")


def is_local(url: str) -> bool:
    """Whether ``url`` points at this machine (loopback or one of its addresses)."""
    host = urlsplit(url).hostname
    if not host:
        return False
    if host.lower() == "localhost":
        return True
    try:
        addr = ipaddress.ip_address(host)
    except ValueError:
        try:
            addr = ipaddress.ip_address(socket.gethostbyname(host))
        except (OSError, ValueError):
            return False
    if addr.is_loopback:
        return True
    try:
        _, _, local_addrs = socket.gethostbyname_ex(socket.gethostname())
    except OSError:
        return False
    return str(addr) in local_addrs


def config_dir_candidates() -> list[Path]:
    """Default Syncthing configuration directories for this platform."""
    home = Path.home()
    candidates: list[Path] = []
    if sys.platform.startswith("win"):
        local_app_data = os.environ.get("LOCALAPPDATA")
        if local_app_data:
            candidates.append(Path(local_app_data) / "Syncthing")
    elif sys.platform == "darwin":
        candidates.append(home / "Library" / "Application Support" / "Syncthing")
    else:
        state_home = os.environ.get("XDG_STATE_HOME")
        candidates.append(Path(state_home) / "syncthing" if state_home else home / ".local" / "state" / "syncthing")
        config_home = os.environ.get("XDG_CONFIG_HOME")
        candidates.append(Path(config_home) / "syncthing" if config_home else home / ".config" / "syncthing")
    return candidates


def locate_https_certificate(config_dir: str = "") -> Path | None:
    """Find the GUI certificate, preferring the daemon's reported config dir."""
    dirs = [Path(config_dir)] if config_dir else config_dir_candidates()
    for directory in dirs:
        path = directory / HTTPS_CERT_NAME
        if path.is_file():
            return path
    return None


def load_certificate(path: Path) -> bytes | None:
    """Return the DER bytes of the first PEM certificate in ``path``."""
    try:
        pem = path.read_text(encoding="ascii")
    except (OSError, UnicodeDecodeError):
        return None
    begin = pem.find("-----BEGIN CERTIFICATE-----")
    end_marker = "-----END CERTIFICATE-----"
    end = pem.find(end_marker, begin)
    if begin < 0 or end < 0:
        return None
    try:
        return ssl.PEM_cert_to_DER_cert(pem[begin:end + len(end_marker)])
    except ValueError:
        return None


def build_ssl_context(
    certificate_path: str | None,
    expected_errors: tuple[ExpectedTlsError, ...] | list[ExpectedTlsError],
) -> ssl.SSLContext | bool:
    """SSL context honouring exactly the expected errors for one certificate.

    Without a certificate or expectations the default verification applies.
    The certificate becomes a trust anchor (covering self-signed, local issuer
    and first-certificate errors); hostname checks are only relaxed when a
    hostname mismatch is expected.  Every other failure still aborts.
    """
    if not certificate_path or not expected_errors:
        return True
    expected = set(expected_errors)
    ctx = ssl.create_default_context()
    if expected & {
        ExpectedTlsError.SELF_SIGNED_CERTIFICATE,
        ExpectedTlsError.UNABLE_TO_GET_LOCAL_ISSUER_CERTIFICATE,
        ExpectedTlsError.UNABLE_TO_VERIFY_FIRST_CERTIFICATE,
    }:
        ctx.load_verify_locations(cafile=certificate_path)
        ctx.verify_flags |= ssl.VERIFY_X509_PARTIAL_CHAIN
        # Syncthing's generated leaf lacks extensions the strict mode demands
        ctx.verify_flags &= ~ssl.VERIFY_X509_STRICT
    if ExpectedTlsError.HOST_NAME_MISMATCH in expected:
        ctx.check_hostname = False
    return ctx
