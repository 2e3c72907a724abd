"""Moving every secured site to a new base domain

A rename is a best-effort batch, not a transaction. The secured set is
read once up front; every host in it is unsecured, and only then is every
host secured again under the new domain. A failure for one host does not
stop the others, nothing is rolled back, and the failures are reported
together at the end. Re-running the rename converges.
"""

import logging

from .certificates import CertificateStore
from .config import Config
from .dnsmasq import DnsMasq
from .errors import DomainRenameError, ValetError
from .sites import SiteRegistry

logger = logging.getLogger("valet.domain")


def replace_domain_suffix(url: str, old_domain: str, new_domain: str) -> str:
    """Swap a trailing ``.old_domain`` for ``.new_domain``.

    Only the suffix is replaced, so ``dev.tools.dev`` renamed from ``dev``
    to ``test`` becomes ``dev.tools.test``. Hosts not under *old_domain*
    are returned unchanged.
    """
    old_suffix = f".{old_domain}"
    if old_domain and url.endswith(old_suffix):
        return url[: -len(old_suffix)] + f".{new_domain}"
    return url


def resecure_for_new_domain(
    sites: SiteRegistry,
    certificates: CertificateStore,
    old_domain: str,
    new_domain: str,
) -> list[str]:
    """Re-issue every secured host's certificate under *new_domain*.

    Returns the hosts secured under the new domain. Raises
    DomainRenameError after both passes if any host failed.
    """
    if not sites.files.exists(sites.certificates_path):
        logger.debug("No certificates directory; nothing to re-secure")
        return []

    secured = sites.secured()
    failures: list[tuple[str, Exception]] = []

    for url in secured:
        try:
            certificates.unsecure(url)
        except (ValetError, OSError) as exc:
            logger.error("Failed to unsecure %s: %s", url, exc)
            failures.append((url, exc))

    renamed = []
    for url in secured:
        new_url = replace_domain_suffix(url, old_domain, new_domain)
        try:
            certificates.secure(new_url)
        except (ValetError, OSError) as exc:
            logger.error("Failed to secure %s: %s", new_url, exc)
            failures.append((new_url, exc))
        else:
            renamed.append(new_url)

    if failures:
        raise DomainRenameError(failures)
    return renamed


def update_domain(
    config: Config,
    dnsmasq: DnsMasq,
    sites: SiteRegistry,
    certificates: CertificateStore,
    new_domain: str,
) -> list[str]:
    """Switch valet to *new_domain*: DNS first, then config, then certificates"""
    old_domain = config.get_domain()
    logger.info("Changing domain from %s to %s", old_domain, new_domain)

    dnsmasq.update_domain(old_domain, new_domain)
    config.set_domain(new_domain)

    return resecure_for_new_domain(sites, certificates, old_domain, new_domain)
