"""Reusable payloads for customer and address test scenarios."""

TENANTS = [
    {"id": 1, "name": "Tenant 1", "slug": "tenant-1"},
    {"id": 2, "name": "Tenant 2", "slug": "tenant-2"},
]

CUSTOMER_ALICE = {
    "first_name": "Alice",
    "last_name": "Walker",
    "email": "alice@example.com",
    "phone_number": "5550001111",
}

CUSTOMER_BOB = {
    "first_name": "Bob",
    "last_name": "Stone",
    "email": "bob@example.com",
    "phone_number": "5550002222",
}

GUEST_CAROL = {
    "first_name": "Carol",
    "last_name": "Reyes",
    "email": "carol@example.com",
    "phone_number": "5550003333",
}

HOME_ADDRESS = {
    "first_name": "Alice",
    "last_name": "Walker",
    "phone_number": "5550001111",
    "street_address": "100 Main St",
    "apartment": "Apt 4",
    "city": "Springfield",
    "state": "IL",
    "postal_code": "62701",
}

OFFICE_ADDRESS = {
    "first_name": "Alice",
    "last_name": "Walker",
    "phone_number": "5550001111",
    "street_address": "200 Market Ave",
    "city": "Chicago",
    "state": "IL",
    "postal_code": "60601",
}

ABROAD_ADDRESS = {
    "first_name": "Alice",
    "last_name": "Walker",
    "phone_number": "5550001111",
    "street_address": "10 Queen St",
    "city": "Toronto",
    "state": "ON",
    "postal_code": "M5H 2N2",
    "country": "Canada",
}
