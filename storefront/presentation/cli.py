"""
Command-line interface for the storefront.

Quotes shipping and totals, and manages a guest cart kept in the local
storage file, so pricing can be checked without the web front end.
"""

import argparse
import asyncio
import sys
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from storefront.application import StorefrontSession
from storefront.config import settings
from storefront.config.logging_config import get_logger, setup_logging
from storefront.data.local_storage import JsonFileStorage
from storefront.data.models import Product
from storefront.domain.pricing import PricingEngine, ShippingTier
from storefront.domain.store import OperationResult
from storefront.utils.formatters import money

logger = get_logger(__name__)


def _decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")


def _tier(value: str) -> ShippingTier:
    try:
        return ShippingTier.from_string(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a whole number: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError("quantity must be at least 1")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="storefront", description="Storefront pricing and guest cart tools")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        default=None, help="Set logging level (default: LOG_LEVEL, or DEBUG in debug mode)")
    parser.add_argument("--storage", help="Path of the guest storage file")
    commands = parser.add_subparsers(dest="command", required=True)

    quote = commands.add_parser("quote", help="Show shipping options and totals for a subtotal")
    quote.add_argument("--subtotal", type=_decimal, required=True)
    quote.add_argument("--city", required=True)
    quote.add_argument("--tier", type=_tier, default=ShippingTier.STANDARD)

    cart = commands.add_parser("cart", help="Manage the guest cart")
    cart_commands = cart.add_subparsers(dest="cart_command", required=True)

    cart_commands.add_parser("list", help="List cart lines")

    add = cart_commands.add_parser("add", help="Add a product")
    add.add_argument("product_id")
    add.add_argument("--name", default="")
    add.add_argument("--price", type=_decimal, required=True)
    add.add_argument("--quantity", type=_positive_int, default=1)

    update = cart_commands.add_parser("set", help="Set a line's quantity (0 removes it)")
    update.add_argument("product_id")
    update.add_argument("quantity", type=int)

    remove = cart_commands.add_parser("remove", help="Remove a product")
    remove.add_argument("product_id")

    cart_commands.add_parser("clear", help="Empty the cart")

    checkout = cart_commands.add_parser("checkout", help="Price the cart for a destination")
    checkout.add_argument("--city", required=True)
    checkout.add_argument("--tier", type=_tier, default=ShippingTier.STANDARD)

    return parser


def print_quote(engine: PricingEngine, subtotal: Decimal, city: str, tier: ShippingTier) -> None:
    print(f"Destination: {city or 'Not specified'} ({engine.classify(city).value} zone)")
    for option in engine.shipping_options(subtotal, city):
        marker = "*" if option.tier is tier else " "
        print(f" {marker} {option.tier.value:<9} {money(option.quote.total_shipping_cost):>12}  {option.delivery_estimate}")

    totals = engine.checkout_totals(subtotal, city, tier)
    print(f"Subtotal: {money(totals.subtotal)}")
    print(f"Shipping: {money(totals.shipping_cost)}")
    print(f"Tax:      {money(totals.tax)}")
    print(f"Total:    {money(totals.total)}")

    remaining = engine.free_shipping_remaining(subtotal)
    if remaining > 0:
        print(f"Add {money(remaining)} more to qualify for free shipping")


def _report(result: OperationResult) -> int:
    if result.ok and result.persisted:
        return 0
    print(f"Error: {result.error}", file=sys.stderr)
    return 0 if result.ok else 1


async def run_cart_command(args: argparse.Namespace) -> int:
    storage = JsonFileStorage(args.storage) if args.storage else None
    session = StorefrontSession(storage=storage)
    await session.start()

    try:
        cart = session.cart
        if args.cart_command == "add":
            product = Product(product_id=args.product_id, name=args.name, price=args.price)
            return _report(await cart.add_item(product, args.quantity))
        if args.cart_command == "set":
            return _report(await cart.update_quantity(args.product_id, args.quantity))
        if args.cart_command == "remove":
            return _report(await cart.remove_item(args.product_id))
        if args.cart_command == "clear":
            return _report(await cart.clear())
        if args.cart_command == "checkout":
            if not cart.items:
                print("Cart is empty")
                return 1
            print_quote(session.engine, cart.subtotal, args.city, args.tier)
            return 0

        for line in cart.items:
            print(f"{line.product_id:<12} {line.name:<24} {line.quantity:>4} x {money(line.unit_price):>12} = {money(line.line_total):>12}")
        print(f"{cart.count} item(s), subtotal {money(cart.subtotal)}")
        return 0
    finally:
        await session.stop()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    log_file = None
    if settings.logging.file_enabled:
        settings.ensure_directories()
        log_file = settings.logs_dir / "storefront.log"
    setup_logging(
        args.log_level or settings.log_level,
        settings.logging.format,
        settings.logging.console_enabled,
        log_file,
    )

    if args.command == "quote":
        print_quote(PricingEngine(settings.pricing), args.subtotal, args.city, args.tier)
        return 0

    return asyncio.run(run_cart_command(args))


if __name__ == "__main__":
    sys.exit(main())
