"""Delivery-zone lookup tool."""

from __future__ import annotations

import re

from librarian.tools.base import Tool, ToolContext, ToolResponse

LOGISTICS_POLICY = (
    "GENERAL POLICY: We aim to ship all orders the next day. Local delivery is standard "
    "same/next day. Our main routes cover Great Falls and Billings regions."
)

_ZIP_PATTERN = re.compile(r"(?<!\d)(\d{5})(?:-\d{4})?(?!\d)")


def extract_zip_codes(message: str) -> list[str]:
    seen: list[str] = []
    for match in _ZIP_PATTERN.finditer(message):
        if match.group(1) not in seen:
            seen.append(match.group(1))
    return seen


class DeliveryTool(Tool):
    """Answer delivery questions from the zone dataset plus the logistics policy."""

    name = "delivery"

    async def run(self, context: ToolContext) -> ToolResponse:
        zones = context.snapshot.delivery_zones
        by_zip = {zone.zip: zone for zone in zones}
        requested = extract_zip_codes(context.message)

        lookups: list[str] = []
        matched: list[str] = []
        for code in requested:
            zone = by_zip.get(code)
            if zone is None:
                lookups.append(f"ZIP {code}: NO MATCH FOUND in delivery zones. Direct the user to support for shipping routes.")
            else:
                matched.append(code)
                lookups.append(f"ZIP {code}: MATCH FOUND. Delivers to {zone.city} ({zone.county} County).")
        if not requested:
            lookups.append("NO ZIP PROVIDED: confirm we deliver and ask for their city or zip code.")

        zone_list = "\n".join(f"{zone.zip}: {zone.city} ({zone.county})" for zone in zones)
        content = "\n".join(
            [
                "DELIVERY & SHIPPING CONTEXT:",
                "ZIP LOOKUP:",
                *lookups,
                "VALID DELIVERY LOCATIONS:",
                zone_list or "No specific zipcode data found.",
                LOGISTICS_POLICY,
            ]
        )
        return ToolResponse(content=content, data={"requested": requested, "matched": matched})
