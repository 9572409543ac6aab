from receiptsplit.services.bill import Bill
from receiptsplit.services.summary import format_cents, format_items, format_money, format_pct, format_summary


def scenario_bill() -> Bill:
    bill = Bill("Alice")
    bill.add_participant("Bob")
    burger = bill.add_item({"name": "Burger", "qty": 1, "price": 12.99})
    bill.add_item({"name": "Fries", "qty": 2, "price": 4.50})
    bill.toggle(burger.id, "Alice")
    return bill


def test_money_formatting():
    assert format_money(2.8587) == "$2.86"
    assert format_money(0.125) == "$0.12"
    assert format_money(10, "EUR") == "€10.00"
    assert format_money(3.5, "JPY") == "3.50 JPY"
    assert format_cents(590, "GBP") == "£5.90"
    assert format_pct(0.13) == "13%"
    assert format_pct(0.0875) == "8.75%"


def test_format_items():
    bill = scenario_bill()
    lines = format_items(bill).splitlines()
    assert lines[0] == "1. Burger × 1 @ $12.99 = $12.99 · Alice"
    assert lines[1] == "2. Fries × 2 @ $4.50 = $9.00 · everyone"
    assert format_items(Bill()).startswith("No items yet")


def test_summary_cents_add_up():
    bill = scenario_bill()
    text = format_summary(bill, bill.allocate())

    assert "Subtotal: $21.99" in text
    assert "Tax (13%): $2.86" in text
    assert "Tip (18%): $3.96" in text
    assert "<b>Total: $28.81</b>" in text
    assert "Alice: $22.91 (79.5% of total, 2 items)" in text
    assert "Bob: $5.90 (20.5% of total, 1 item)" in text
    assert "⚠️" not in text


def test_summary_without_people_warns_about_unassigned_funds():
    bill = Bill()
    bill.add_item({"name": "Pizza", "price": 20})
    bill.set_tax_pct(0.0)
    bill.set_tip_pct(0.0)
    text = format_summary(bill, bill.allocate())

    assert "No people added yet" in text
    assert "⚠️ $20.00 is not assigned to anyone" in text


def test_summary_escapes_html():
    bill = Bill("<you>")
    bill.merchant = "Tom & Jerry's"
    bill.add_item({"name": "<b>Pie</b>", "price": 5})
    text = format_summary(bill, bill.allocate())

    assert "<b>Tom &amp; Jerry&#x27;s</b>" in text
    assert "&lt;you&gt;: $" in text
    assert "&lt;b&gt;Pie&lt;/b&gt;" in format_items(bill)
