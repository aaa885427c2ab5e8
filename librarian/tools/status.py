"""Status-marker tools for decisions that carry no retrieved document."""

from __future__ import annotations

from librarian.tools.base import Tool, ToolContext, ToolResponse

NO_PRODUCT_NAMED = "STATUS: NO PRODUCT NAMED."
UNKNOWN_PRODUCT = "STATUS: UNKNOWN PRODUCT."
OUT_OF_DOMAIN = "STATUS: OUT OF DOMAIN."


class ClarifyTool(Tool):
    """Ask which product the user means before giving technical detail."""

    name = "clarify"

    async def run(self, context: ToolContext) -> ToolResponse:
        return ToolResponse(
            content=(
                f"{NO_PRODUCT_NAMED} You MUST ask which product they are referring to before "
                "providing safety or technical details. Do not guess the product."
            )
        )


class UnknownProductTool(Tool):
    """Acknowledge a product we hold no technical record for."""

    name = "unknown_product"

    async def run(self, context: ToolContext) -> ToolResponse:
        return ToolResponse(
            content=(
                f'{UNKNOWN_PRODUCT} The user mentioned "{context.message}", but we do not have a '
                "technical record for it. Acknowledge this name specifically and offer general guidance."
            ),
            data={"mentioned": context.message},
        )


class GeneralTool(Tool):
    """Politely deflect questions outside the product domain."""

    name = "general"

    async def run(self, context: ToolContext) -> ToolResponse:
        return ToolResponse(
            content=(
                f"{OUT_OF_DOMAIN} The question is unrelated to our products, safety records or "
                "delivery. Politely explain that you can only help with those topics and invite a "
                "product question."
            )
        )
