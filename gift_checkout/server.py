"""
Gift Checkout MCP Server.

Exposes the buyer -> address -> payment checkout as tools over stdio. One
in-memory session per server process; card data never leaves memory and every
response is passed through the output sanitizer.
"""
import asyncio
import json
import logging
import os
from datetime import datetime
from pathlib import Path

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from .checkout import CheckoutSession, CheckoutStep, PaymentMethod, parse_cart_query
from .gateway import GatewayConfigurationError, PaymentGateway, get_gateway
from .output_sanitizer import redact_card_number, sanitize_output
from .postal import PostalCodeLookup, ViaCepLookup
from .validators import FIELD_RULES

logger = logging.getLogger(__name__)

# Debug log: records every tool call and response for session review
_DEBUG_LOG_DIR = Path(os.environ.get(
    "CHECKOUT_DEBUG_DIR",
    os.path.expanduser("~/.config/gift-checkout/debug"),
))


# Card fields whose raw values never reach the log file
_SECRET_FIELDS = {"number", "cvv"}


def _loggable_args(args: dict) -> dict:
    if args.get("field") in _SECRET_FIELDS and "value" in args:
        return {**args, "value": "[REDACTED]"}
    return args


def _debug_log(tool_name: str, args: dict, result: str) -> None:
    """Append a tool call entry to the debug log file."""
    try:
        _DEBUG_LOG_DIR.mkdir(parents=True, exist_ok=True)
        log_file = _DEBUG_LOG_DIR / f"session_{datetime.now().strftime('%Y-%m-%d')}.log"
        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]

        entry = (
            f"\n{'='*80}\n"
            f"[{timestamp}] TOOL: {tool_name}\n"
            f"ARGS: {sanitize_output(json.dumps(_loggable_args(args), indent=2, ensure_ascii=False))}\n"
            f"RESPONSE:\n{result}\n"
        )

        with open(log_file, "a") as f:
            f.write(entry)
    except Exception as e:
        logger.debug("Debug log write failed: %s", e)

server = Server("gift-checkout")

# Lazy-initialized singletons
_session: CheckoutSession | None = None
_gateway: PaymentGateway | None = None
_postal_lookup: PostalCodeLookup | None = None


def _get_gateway() -> PaymentGateway:
    global _gateway
    if _gateway is None:
        _gateway = get_gateway()
    return _gateway


def _get_postal_lookup() -> PostalCodeLookup:
    global _postal_lookup
    if _postal_lookup is None:
        _postal_lookup = ViaCepLookup()
    return _postal_lookup


def _get_session() -> CheckoutSession:
    global _session
    if _session is None:
        _session = CheckoutSession()
    return _session


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------

@server.list_tools()
async def list_tools() -> list[Tool]:
    return [
        Tool(
            name="start_checkout",
            description=(
                "Start a new checkout, discarding any checkout in progress. "
                "Optionally seed the cart from a query string of item=id,name,price,quantity entries "
                "(prices in cents)."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "cart_query": {
                        "type": "string",
                        "description": "Query string, e.g. '?item=1,Fralda,4990,2&item=2,Body,3990,1'",
                    },
                },
                "required": [],
            },
        ),
        Tool(
            name="update_field",
            description=(
                "Set one form field. The value is formatted (CPF, phone, CEP and card masks) "
                "and checked immediately; the response includes the field's error, if any."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "field": {
                        "type": "string",
                        "enum": list(FIELD_RULES),
                        "description": "Form field name",
                    },
                    "value": {
                        "type": "string",
                        "description": "Raw value as typed by the buyer",
                    },
                    "step": {
                        "type": "integer",
                        "enum": [1, 2, 3],
                        "description": "Step the field belongs to (1 buyer, 2 address, 3 payment)",
                    },
                },
                "required": ["field", "value"],
            },
        ),
        Tool(
            name="set_payment_method",
            description="Choose how to pay: credit_card, pix, or boleto. Leaving credit_card discards card data.",
            inputSchema={
                "type": "object",
                "properties": {
                    "method": {
                        "type": "string",
                        "enum": [m.value for m in PaymentMethod],
                    },
                },
                "required": ["method"],
            },
        ),
        Tool(
            name="next_step",
            description="Validate the current step and advance to the next one if every field is valid.",
            inputSchema={"type": "object", "properties": {}, "required": []},
        ),
        Tool(
            name="prev_step",
            description="Go back one step. Never validates.",
            inputSchema={"type": "object", "properties": {}, "required": []},
        ),
        Tool(
            name="lookup_postal_code",
            description="Pre-fill street, neighborhood, city and state from the zipcode already entered.",
            inputSchema={"type": "object", "properties": {}, "required": []},
        ),
        Tool(
            name="process_payment",
            description=(
                "Submit the order to the payment gateway. Returns the transaction id and, "
                "for PIX or boleto, the payment code/URL and expiry."
            ),
            inputSchema={"type": "object", "properties": {}, "required": []},
        ),
        Tool(
            name="view_checkout",
            description="Show the current checkout: step, cart, redacted buyer/card data, and field errors.",
            inputSchema={"type": "object", "properties": {}, "required": []},
        ),
        Tool(
            name="check_order_status",
            description="Fetch the gateway status of an order by its transaction id.",
            inputSchema={
                "type": "object",
                "properties": {
                    "transaction_id": {
                        "type": "string",
                        "description": "Order id returned by process_payment (defaults to the last one)",
                    },
                },
                "required": [],
            },
        ),
    ]


# ---------------------------------------------------------------------------
# Tool dispatch
# ---------------------------------------------------------------------------

@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    try:
        if name == "start_checkout":
            result = await _handle_start_checkout(arguments)
        elif name == "update_field":
            result = await _handle_update_field(arguments)
        elif name == "set_payment_method":
            result = await _handle_set_payment_method(arguments)
        elif name == "next_step":
            result = await _handle_next_step(arguments)
        elif name == "prev_step":
            result = await _handle_prev_step(arguments)
        elif name == "lookup_postal_code":
            result = await _handle_lookup_postal_code(arguments)
        elif name == "process_payment":
            result = await _handle_process_payment(arguments)
        elif name == "view_checkout":
            result = await _handle_view_checkout(arguments)
        elif name == "check_order_status":
            result = await _handle_check_order_status(arguments)
        else:
            return [TextContent(type="text", text=f"Unknown tool: {name}")]

        if isinstance(result, str):
            text = result
        else:
            text = json.dumps(result, indent=2, ensure_ascii=False)
        sanitized = sanitize_output(text)

        _debug_log(name, arguments, sanitized)
        return [TextContent(type="text", text=sanitized)]

    except Exception as e:
        logger.exception("Tool %s failed", name)
        error_text = sanitize_output(f"Error: {str(e)}")
        _debug_log(name, arguments, error_text)
        return [TextContent(type="text", text=error_text)]


# ---------------------------------------------------------------------------
# Tool implementations
# ---------------------------------------------------------------------------

async def _handle_start_checkout(args: dict) -> dict:
    """Replace the session with a fresh one, optionally seeded from a cart link."""
    global _session
    _session = CheckoutSession()

    cart_query = args.get("cart_query")
    if cart_query:
        _session.load_cart(parse_cart_query(cart_query))

    return {"status": "started", "checkout": _session.summary()}


def _echo_value(field: str, stored: str) -> str:
    if not stored:
        return stored
    if field == "cvv":
        return "***"
    if field == "number":
        return redact_card_number(stored)
    return stored


async def _handle_update_field(args: dict) -> dict:
    session = _get_session()
    field = args["field"]
    stored = session.update_field(field, args["value"], args.get("step"))
    return {
        "field": field,
        "value": _echo_value(field, stored),
        "error": session.errors.get(field),
    }


async def _handle_set_payment_method(args: dict) -> dict:
    session = _get_session()
    session.set_payment_method(args["method"])
    return {"status": "ok", "payment_method": session.order.payment_method.value}


async def _handle_next_step(args: dict) -> dict:
    session = _get_session()
    advanced = session.next_step()
    if not advanced:
        return {
            "status": "invalid",
            "step": int(session.step),
            "errors": session.errors,
            "message": "Fix the fields listed in 'errors' and call next_step again.",
        }
    return {"status": "ok", "step": int(session.step)}


async def _handle_prev_step(args: dict) -> dict:
    session = _get_session()
    return {"status": "ok", "step": int(session.prev_step())}


async def _handle_lookup_postal_code(args: dict) -> dict:
    session = _get_session()
    filled = await session.apply_postal_lookup(_get_postal_lookup())
    if not filled:
        return {
            "status": "not_found",
            "message": "No address found for this zipcode. Fill the address fields manually.",
        }
    return {"status": "ok", "address": session.summary().get("address", {})}


async def _handle_process_payment(args: dict) -> dict:
    session = _get_session()
    if session.step != CheckoutStep.PAYMENT:
        return {
            "status": "error",
            "message": f"Payment is the last step; the checkout is at step {int(session.step)}.",
        }
    if session.is_loading:
        return {"status": "busy", "message": "A payment is already being processed."}

    if session.gateway is None:
        try:
            session.gateway = _get_gateway()
        except GatewayConfigurationError as e:
            return {"status": "error", "message": str(e)}

    result = await session.process_payment()
    if result is None:
        if session.errors:
            return {"status": "invalid", "errors": session.errors}
        return {"status": "failed", "message": "Payment could not be processed. Try again later."}

    response: dict = {
        "status": "paid" if result.success else "declined",
        "transaction_id": result.transaction_id,
        "gateway_status": result.status,
    }
    if result.pix:
        response["pix"] = result.pix.model_dump()
    if result.boleto:
        response["boleto"] = result.boleto.model_dump()
    return response


async def _handle_view_checkout(args: dict) -> dict:
    return _get_session().summary()


async def _handle_check_order_status(args: dict) -> dict:
    transaction_id = args.get("transaction_id")
    if not transaction_id:
        session = _get_session()
        if session.result is None:
            return {"status": "error", "message": "No completed payment in this session."}
        transaction_id = session.result.transaction_id

    try:
        gateway = _get_gateway()
    except GatewayConfigurationError as e:
        return {"status": "error", "message": str(e)}

    order = await gateway.get_order_status(transaction_id)
    return {
        "transaction_id": transaction_id,
        "status": order.get("status", "unknown"),
        "amount": order.get("amount"),
    }


# ---------------------------------------------------------------------------
# Server entry point
# ---------------------------------------------------------------------------

async def main():
    """Run the MCP server over stdio."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    logger.info("Gift Checkout MCP server starting...")

    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        if _gateway is not None:
            await _gateway.close()
        if _postal_lookup is not None:
            await _postal_lookup.close()


def run():
    """Sync entry point for console_scripts."""
    asyncio.run(main())
