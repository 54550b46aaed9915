from __future__ import annotations

from typing import Any, Dict

# A stored record as exchanged with a DocumentStore: field name -> value.
# The store attaches "id", "created_at" and "updated_at"; the remaining keys
# are the validated fields of the entity:
# - transactions: name (str), amount (float), date (UTC datetime)
# - users: name (str), email (str, lower-cased)
Document = Dict[str, Any]

TRANSACTIONS = "transactions"
USERS = "users"
