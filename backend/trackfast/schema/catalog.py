"""
Bundled event catalog.

This is the declarative output of the schema generator for the events
the product ships with.  It is plain data: the registry parses it, the
validator never re-derives it.  Iteration order is registration order.
"""

EVENT_SCHEMAS: dict[str, dict] = {
    # ── Authentication ────────────────────────
    "user_signed_up": {
        "description": "A new user created an account",
        "properties": {
            "email": {"type": "string", "required": True},
            "plan": {"type": "enum", "required": True, "enum": ["free", "starter", "growth"]},
            "source": {"type": "string", "required": False},
        },
        "guards": [
            {
                "name": "valid_email",
                "property": "email",
                "message": "email must be a syntactically valid email address",
            },
        ],
    },
    "user_signed_in": {
        "description": "An existing user signed in",
        "properties": {
            "email": {"type": "string", "required": True},
            "method": {"type": "enum", "required": True, "enum": ["password", "google", "github"]},
        },
        "guards": [
            {
                "name": "valid_email",
                "property": "email",
                "message": "email must be a syntactically valid email address",
            },
        ],
    },
    # ── Product ───────────────────────────────
    "pageview": {
        "description": "A page was viewed",
        "properties": {
            "path": {"type": "string", "required": True},
            "referrer": {"type": "string", "required": False},
        },
        "guards": [
            {
                "name": "relative_path",
                "property": "path",
                "message": "path must start with '/'",
            },
        ],
    },
    "feature_used": {
        "description": "A product feature was used",
        "properties": {
            "feature": {"type": "string", "required": True},
            "location": {"type": "string", "required": False},
        },
        "guards": [
            {
                "name": "non_empty",
                "property": "feature",
                "message": "feature must not be empty",
            },
            {
                "name": "max_length",
                "property": "feature",
                "params": {"limit": 128},
                "message": "feature must be at most 128 characters",
            },
        ],
    },
    # ── Business ──────────────────────────────
    "subscription_created": {
        "description": "A paid subscription was started",
        "properties": {
            "plan": {"type": "enum", "required": True, "enum": ["starter", "growth", "agency"]},
            "amount": {"type": "number", "required": True},
            "currency": {"type": "string", "required": False, "default": "USD"},
        },
        "guards": [
            {
                "name": "positive_number",
                "property": "amount",
                "message": "amount must be greater than 0",
            },
            {
                "name": "currency_code",
                "property": "currency",
                "message": "currency must be a three-letter ISO 4217 code",
            },
        ],
    },
    "payment_completed": {
        "description": "A payment was captured",
        "properties": {
            "amount": {"type": "number", "required": True},
            "currency": {"type": "string", "required": False, "default": "USD"},
            "plan": {"type": "string", "required": False},
        },
        "guards": [
            {
                "name": "positive_number",
                "property": "amount",
                "message": "amount must be greater than 0",
            },
            {
                "name": "currency_code",
                "property": "currency",
                "message": "currency must be a three-letter ISO 4217 code",
            },
        ],
    },
    # ── Identity ──────────────────────────────
    "user_identified": {
        "description": "An anonymous visitor was linked to a user id",
        "properties": {
            "userId": {"type": "string", "required": True},
        },
        "guards": [
            {
                "name": "non_empty",
                "property": "userId",
                "message": "userId must not be empty",
            },
        ],
    },
    "user_reset": {
        "description": "The current user logged out and identity was reset",
        "properties": {},
    },
}
