from __future__ import annotations
import datetime
from typing import Optional

import dns.message
import dns.rcode

from .models import ZoneSnapshot
from .records import REVERSE_ZONE


def _age(now: float, created_at: float) -> str:
    return f"{int(max(now - created_at, 0))}s"


def print_zone_records(snapshot: ZoneSnapshot, *, zone: Optional[str] = None) -> None:
    now = snapshot.published_at or 0.0
    rows = []
    for domain in snapshot.zone_names:
        if domain == REVERSE_ZONE or (zone and domain != zone):
            continue
        rs = snapshot.records.get(domain)
        if rs is None:
            continue
        rows.extend((rec.name, str(rec.address), _age(now, rec.created_at)) for rec in rs.forward.values())
    if not rows:
        print("No records found.")
        return
    print(f"{'NAME':<50}  {'ADDRESS':<15}  {'AGE':>8}")
    print("-" * 80)
    for name, addr, age in sorted(rows):
        print(f"{name:<50}  {addr:<15}  {age:>8}")


def print_reverse(snapshot: ZoneSnapshot) -> None:
    now = snapshot.published_at or 0.0
    rs = snapshot.records.get(REVERSE_ZONE)
    items = sorted(rs.reverse.values(), key=lambda r: r.name) if rs else []
    if not items:
        print("No reverse records found.")
        return
    print(f"{'PTR-NAME':<40}  {'TARGET':<50}  {'AGE':>8}")
    print("-" * 104)
    for r in items:
        print(f"{r.name:<40}  {r.target:<50}  {_age(now, r.created_at):>8}")


def print_snapshot_summary(snapshot: ZoneSnapshot) -> None:
    if snapshot.published_at is None:
        print("Nothing published yet.")
        return
    when = datetime.datetime.fromtimestamp(snapshot.published_at).isoformat(timespec="seconds")
    print(f"Published {len(snapshot.zone_names)} zones at {when}: {', '.join(snapshot.zone_names)}")


def print_response(response: dns.message.Message) -> None:
    print(f"status: {dns.rcode.to_text(response.rcode())}")
    for rrset in response.answer:
        print(rrset.to_text())
