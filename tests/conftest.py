import dns.resolver
import pytest

from spoofing_scanner import DomainScanner, LookupClient


class FakeTXT:
    """Stands in for a dnspython TXT rdata"""

    def __init__(self, *strings):
        self.strings = tuple(s.encode("utf-8") for s in strings)


class FakeResolver:
    """
    Static zone: name -> list of TXT values, or an exception to raise.
    A TXT value given as a tuple is split into several character-strings.
    Unknown names raise NXDOMAIN.
    """

    def __init__(self, zone):
        self.zone = zone
        self.queries = []

    def resolve(self, name, rdtype, lifetime=None):
        self.queries.append((name, rdtype, lifetime))
        answer = self.zone.get(name)
        if answer is None:
            raise dns.resolver.NXDOMAIN()
        if isinstance(answer, Exception):
            raise answer
        return [FakeTXT(*value) if isinstance(value, tuple) else FakeTXT(value) for value in answer]


ZONE = {
    # weak SPF, good DMARC
    "a.com": ["v=spf1 include:_spf.a.com ~all"],
    "_dmarc.a.com": ["v=DMARC1; p=reject"],
    # good SPF, no DMARC
    "b.com": ["google-site-verification=abc", "v=spf1 mx -all"],
    # fully protected
    "c.com": ["v=spf1 ip4:192.0.2.0/24 -all"],
    "_dmarc.c.com": ["v=DMARC1; p=quarantine; rua=mailto:dmarc@c.com"],
    # monitoring-only DMARC
    "d.com": ["v=spf1 -all"],
    "_dmarc.d.com": ["v=DMARC1; p=none"],
    # TXT records but none of them SPF
    "e.com": ["MS=ms12345"],
    "_dmarc.e.com": ["v=DMARC1; p=reject; pct=50"],
}


@pytest.fixture
def resolver():
    return FakeResolver(dict(ZONE))


@pytest.fixture
def lookup(resolver):
    return LookupClient(timeout=2.5, resolver=resolver)


@pytest.fixture
def scanner(lookup):
    return DomainScanner(lookup)
