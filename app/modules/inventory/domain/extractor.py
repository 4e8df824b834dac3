import re
from collections.abc import Iterable

from app.modules.inventory.domain.models import InboundEvent

INSTANCE_ID_PATTERN = re.compile(r"i-[0-9a-f]{5,}")
PRIVATE_DNS_NAME_PATTERN = re.compile(
    r"ip-[0-9-]+\.[a-z]{2}-[a-z]+-[0-9]+\.compute\.internal"
)
ELB_DNS_NAME_PATTERN = re.compile(
    r"[0-9a-f]+-[0-9a-f]+\.[a-z]{2}-[a-z]+-[0-9]+\.elb\.amazonaws\.com"
)


def extract(corpus: Iterable[str], pattern: re.Pattern[str]) -> set[str]:
    """All non-overlapping matches of `pattern` across the corpus, deduplicated."""
    return {match.group(0) for text in corpus for match in pattern.finditer(text)}


def find_instance_queries(event: InboundEvent) -> set[str]:
    corpus = event.corpus()
    return extract(corpus, INSTANCE_ID_PATTERN) | extract(
        corpus, PRIVATE_DNS_NAME_PATTERN
    )


def find_load_balancer_queries(event: InboundEvent) -> set[str]:
    return extract(event.corpus(), ELB_DNS_NAME_PATTERN)
