"""
Local MCP server for the Boom Art sales records.

Exposes read-only views of the stored sales (filtered list, totals, pivot
report, customer names) plus the natural-language assistant, so an LLM agent
can inspect the business without going through the Flask app.
"""
import asyncio
import json
import logging
from typing import Any, Dict

from fastmcp import FastMCP

from utils.file_manager import ensure_defaults
from models.sales import all_sales, filter_sales, sort_recent, unique_customers, ALL
from models.report import build_report, summarize
from services.assistant import ask_sales_assistant

LOG = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

server_instructions = """
This MCP server provides access to the sales ledger of a small 3D printing
shop. Every tool accepts an optional month (YYYY-MM, or "all") and payment
method (Efectivo, Yape, Plin or "all") to narrow the records it works on.
"""

def _content(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {"content": [{"type": "text", "text": json.dumps(payload, ensure_ascii=False)}]}

def _selected(month: str, payment: str):
    return sort_recent(filter_sales(all_sales(), month or ALL, payment or ALL))

def report_payload(group_by: str, month: str, payment: str) -> Dict[str, Any]:
    try:
        return {"report": build_report(_selected(month, payment), group_by)}
    except ValueError as e:
        return {"error": str(e)}

async def ask_payload(question: str, month: str, payment: str) -> Dict[str, Any]:
    if not question or not question.strip():
        return {"error": "question must not be empty"}
    # the Gemini call blocks for up to the configured timeout; keep it off the event loop
    reply = await asyncio.to_thread(ask_sales_assistant, question, _selected(month, payment))
    return {"reply": reply}

def create_server() -> FastMCP:
    ensure_defaults()
    mcp = FastMCP(name="Boom Art Sales MCP", instructions=server_instructions)

    @mcp.tool()
    async def sales_list(month: str = ALL, payment: str = ALL) -> Dict[str, Any]:
        """
        Return the sales for a month and payment method, newest first.

        Returns:
            MCP content array with JSON: {"sales": [...]}
        """
        return _content({"sales": _selected(month, payment)})

    @mcp.tool()
    async def sales_summary(month: str = ALL, payment: str = ALL) -> Dict[str, Any]:
        """
        Return count, total sales, total cost and total profit for the selection.
        """
        return _content({"summary": summarize(_selected(month, payment))})

    @mcp.tool()
    async def sales_report(group_by: str = "product", month: str = ALL, payment: str = ALL) -> Dict[str, Any]:
        """
        Pivot the selected sales by one field and rank the groups by total sales.

        Args:
            group_by: one of product, date, paymentMethod, deliveryMethod, buyerName.

        Returns:
            MCP content array with JSON: {"report": {...}} or {"error": "..."}
            when group_by is not a known field.
        """
        return _content(report_payload(group_by, month, payment))

    @mcp.tool()
    async def customers() -> Dict[str, Any]:
        """Distinct buyer names, exactly as typed."""
        return _content({"customers": unique_customers()})

    @mcp.tool()
    async def ask_assistant(question: str, month: str = ALL, payment: str = ALL) -> Dict[str, Any]:
        """
        Ask the Gemini sales assistant a question about the selected sales.

        The reply text is returned verbatim; on any service failure the reply
        is a fixed apology message.
        """
        return _content(await ask_payload(question, month, payment))

    return mcp


def main():
    server = create_server()
    LOG.info("Starting local MCP server on 0.0.0.0:8000 (HTTP)")
    server.run(transport="http", host="0.0.0.0", port=8000, path="/mcp")


if __name__ == "__main__":
    main()
