import json

from src.api.generate_openapi import generate_openapi


def test_writes_schema_with_all_routes(tmp_path):
    out = generate_openapi(str(tmp_path / "interfaces" / "openapi.json"))
    with open(out, encoding="utf-8") as f:
        schema = json.load(f)

    assert set(schema["paths"]) >= {"/", "/transactions", "/transactions/{transaction_id}", "/users"}
    assert {"get", "post"} <= set(schema["paths"]["/transactions"])
    assert {"get", "put", "delete"} <= set(schema["paths"]["/transactions/{transaction_id}"])
    assert {t["name"] for t in schema["tags"]} >= {"health", "transactions", "users"}
