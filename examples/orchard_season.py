#!/usr/bin/env python3
"""
Orchard Season - Marketplace walkthrough

This example runs one season of the FruitFlow marketplace:

Scenario:
- A citrus supplier and a refrigerated transporter sign up and get approved
- Suppliers list oranges, lemons and peaches in the catalog
- A loyal restaurant buyer and a one-off buyer place orders
- Orders move through on-chain funding, delivery and settlement
- Ratings from the loyal buyer count for more than the newcomer's
- A second supplier who keeps delivering bruised fruit is suspended
  automatically after ten poor ratings

Run:
    python examples/orchard_season.py
"""

import tempfile
from datetime import datetime, timezone
from pathlib import Path

from fruitflow import FruitFlow
from fruitflow.kernel.errors import AccountSuspended
from fruitflow.kernel.time import TestTimeProvider


def print_section(title: str) -> None:
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70 + "\n")


def settle(ff: FruitFlow, order_id: str, supplier: str) -> None:
    """Drive an order without transporter to CompletedOnChain"""
    for status in ("AwaitingOnChainCreation", "AwaitingOnChainFunding", "FundedOnChain", "CompletedOnChain"):
        ff.update_order_status(order_id, status, actor_id=supplier)


def main() -> None:
    """Run the orchard season example"""

    print_section("Orchard Season - FruitFlow")

    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "season.db"
        clock = TestTimeProvider(datetime(2025, 1, 15, 9, 0, 0, tzinfo=timezone.utc))
        ff = FruitFlow(db_path, time_provider=clock)
        print(f"Database: {db_path}")

        # Step 1: Accounts
        print_section("Step 1: Sign up and approve")

        ff.signup("SunnyGrove", "pw", "supplier")
        ff.signup("BruiseBros", "pw", "supplier")
        ff.signup("ColdChain", "pw", "transporter")
        ff.signup("Bistro", "pw", "customer")
        ff.signup("Walkin", "pw", "customer")

        print(f"Pending approvals: {[u.id for u in ff.list_pending_approvals()]}")
        for user_id in ("sunnygrove", "bruisebros", "coldchain"):
            ff.approve_user(user_id, actor_id="nhom1")
            print(f"✓ Approved {user_id}")

        ff.update_profile("sunnygrove", actor_id="sunnygrove", address="Huerta 3, Valencia")
        ff.update_profile("bistro", actor_id="bistro", address="Rue Mercière 8, Lyon")
        ff.update_profile("coldchain", actor_id="coldchain", ethereum_address="0xC01dCha1n")
        ff.update_shipping_rates("coldchain", "coldchain", 80.0, 1.1, 0.7)
        print(f"Available transporters: {[u.id for u in ff.list_available_transporters()]}")

        oranges = ff.add_product("sunnygrove", "Oranges", "Valencia late oranges, pallet of 60 boxes", 900,
                                 unit="pallet", stock_quantity=4, category="Citrus")
        lemons = ff.add_product("sunnygrove", "Lemons", "Unwaxed lemons, hand-picked", 1.2,
                                unit="kg", stock_quantity=1000, category="Citrus")
        peaches = ff.add_product("bruisebros", "Peaches", "Yellow peaches, picked ripe", 2,
                                 unit="kg", stock_quantity=100, category="Stone fruit")
        for product in ff.search_products("citrus"):
            print(f"  Catalog: {product.name} {product.price:.2f}/{product.unit.value} from {product.supplier_id}")

        # Step 2: A shipped order
        print_section("Step 2: Oranges from Valencia to Lyon")

        order = ff.place_order("bistro", oranges.id, quantity=2, currency="EUR")
        print(f"✓ Placed order {order.id}: {order.total_amount:.2f} {order.currency}")

        distance = ff.estimate_distance(order.pickup_address or "", order.delivery_address or "")
        print(f"  Route estimate: {distance.distance_text} ({distance.note})")

        order = ff.assign_transporter(order.id, "coldchain", actor_id="sunnygrove", distance_km=1050)
        print(f"✓ Assigned coldchain, estimated fee {order.estimated_transporter_fee:.2f}")

        ff.update_order_status(order.id, "FundedOnChain", actor_id="bistro")
        print(f"  Oranges left in stock: {ff.get_product(oranges.id).stock_quantity} pallets")
        for step in ("In Transit", "Out for Delivery", "Delivered"):
            clock.advance_days(1)
            ff.update_shipment_status(order.id, step, actor_id="coldchain")
            print(f"  Shipment: {step}")
        ff.update_order_status(order.id, "CompletedOnChain", actor_id="bistro")

        payout = ff.simulate_payout("0xC01dCha1n", order.estimated_transporter_fee or 0, "EUR", "0xFruitFlowEscrow")
        print(f"✓ Paid transporter: {payout.mock_transaction_hash[:18]}...")

        ff.submit_assessment(order.id, actor_id="bistro", supplier_rating=5, transporter_rating=4)
        print("✓ Bistro rated the order")

        # Step 3: Loyalty weighting
        print_section("Step 3: Loyal buyers count for more")

        loyal_orders = []
        for _ in range(11):
            o = ff.place_order("bistro", lemons.id, quantity=50)
            settle(ff, o.id, "sunnygrove")
            loyal_orders.append(o.id)
        one_off = ff.place_order("walkin", lemons.id, quantity=2)
        settle(ff, one_off.id, "sunnygrove")

        ff.submit_assessment(loyal_orders[-1], actor_id="bistro", supplier_rating=5)
        ff.submit_assessment(one_off.id, actor_id="walkin", supplier_rating=1)

        rep = ff.reputation("sunnygrove")
        print(f"SunnyGrove: {rep['average_supplier_rating']:.2f} from {rep['supplier_rating_count']} ratings")
        print("  The walk-in's 1 star barely moves the loyal buyer's 5 stars.")

        # Step 4: Automatic suspension
        print_section("Step 4: Ten poor ratings")

        for i in range(10):
            o = ff.place_order("walkin", peaches.id, quantity=5)
            settle(ff, o.id, "bruisebros")
            ff.submit_assessment(o.id, actor_id="walkin", supplier_rating=1, supplier_feedback="Bruised")
            status = "SUSPENDED" if ff.get_user("bruisebros").is_suspended else "active"
            print(f"  Rating {i + 1}: bruisebros is {status}")

        try:
            ff.login("BruiseBros", "pw")
        except AccountSuspended as e:
            print(f"\n✓ Login refused: {e}")

        print_section("Marketplace health")
        for key, value in ff.health().items():
            if key != "last_recompute":
                print(f"  {key}: {value}")
        print(f"  last recompute: {ff.last_recompute.summary()}")


if __name__ == "__main__":
    main()
