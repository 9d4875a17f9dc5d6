"""Print a valid `/verify-payment` body for a given order and payment id.

Useful for exercising verification by hand without a real checkout.
"""

import argparse
import json
import os
from uuid import uuid4

from payrelay.services.checkout.service import compute_signature


def main() -> None:
    """Parse CLI args and print the signed verification payload."""

    parser = argparse.ArgumentParser(description="Sign an order/payment id pair like Razorpay checkout does.")
    parser.add_argument("--order-id", required=True, help="Order id returned by /create-order")
    parser.add_argument("--payment-id", default=None, help="Defaults to a random pay_fake_ id")
    parser.add_argument("--secret", default=os.getenv("RAZORPAY_KEY_SECRET"), help="Defaults to $RAZORPAY_KEY_SECRET")
    args = parser.parse_args()

    if not args.secret:
        raise SystemExit("Provide --secret or set RAZORPAY_KEY_SECRET")

    payment_id = args.payment_id or f"pay_fake_{uuid4().hex[:10]}"
    body = {
        "razorpay_order_id": args.order_id,
        "razorpay_payment_id": payment_id,
        "razorpay_signature": compute_signature(args.secret, args.order_id, payment_id),
    }
    print(json.dumps(body, indent=2))


if __name__ == "__main__":
    main()
