"""Custom helpers and filters -- extend the expression pipeline.

Helpers are called with space-separated arguments (``{{price amount "EUR"}}``);
filters are chained after a pipe (``{{name | initials | uppercase}}``).
Per-template default data fills in anything the caller leaves out.

Run:
    python app.py
"""

from blockwork import Environment


def price(amount, currency="USD"):
    """Format a number as a price."""
    return f"{float(amount):,.2f} {currency}"


def initials(value):
    """Keep the first letter of each word."""
    return "".join(word[0] for word in str(value).split())


env = Environment(
    templates={
        "invoice": (
            "<h1>{{customer | initials | uppercase}}</h1>"
            "{{#each lines}}<p>{{label | truncate:12}}: {{price amount currency}}</p>{{/each}}"
            "<footer>{{note | default:\"Thank you\"}}</footer>"
        ),
    },
    defaults={"invoice": {"currency": "EUR"}},
)
env.register_helper("price", price)
env.register_filter("initials", initials)

output = env.render(
    "invoice",
    customer="ada lovelace",
    lines=[
        {"label": "Analytical engine", "amount": 1250},
        {"label": "Punch cards", "amount": 12.5},
    ],
)

missing = env.from_string("{{name | shout}}").render(name="x")


def main() -> None:
    print(output)
    print(missing)


if __name__ == "__main__":
    main()
