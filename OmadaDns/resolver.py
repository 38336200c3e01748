from __future__ import annotations

import logging
from typing import Callable, Optional

import dns.flags
import dns.message
import dns.rcode
import dns.rrset

from .zones import ZoneStore, lookup

logger = logging.getLogger(__name__)

NextHandler = Callable[[dns.message.Message], Optional[dns.message.Message]]


class SnapshotResolver:
    """Answers queries from the published snapshot, deferring the rest.

    Anything the snapshot cannot answer goes to ``next_handler``. When that is
    missing or returns None the reply is SERVFAIL, not NXDOMAIN.
    """

    def __init__(self, store: ZoneStore, next_handler: Optional[NextHandler] = None) -> None:
        self.store = store
        self.next_handler = next_handler

    def resolve(self, qname, rdtype) -> Optional[dns.rrset.RRset]:
        return lookup(self.store.snapshot, qname, rdtype)

    def handle(self, query: dns.message.Message) -> dns.message.Message:
        if query.question:
            question = query.question[0]
            rrset = self.resolve(question.name, question.rdtype)
            if rrset is not None:
                response = dns.message.make_response(query)
                response.flags |= dns.flags.AA
                response.answer.append(rrset)
                return response
            logger.debug("resolver: no record for %s %s, passing on", question.name, question.rdtype.name)

        if self.next_handler is not None:
            response = self.next_handler(query)
            if response is not None:
                return response

        response = dns.message.make_response(query)
        response.set_rcode(dns.rcode.SERVFAIL)
        return response

    def handle_wire(self, data: bytes) -> bytes:
        return self.handle(dns.message.from_wire(data)).to_wire()
