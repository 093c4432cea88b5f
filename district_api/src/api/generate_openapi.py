import json
import os

from src.api.main import app

# Get the OpenAPI schema (note: all REST routes are under /api/v1)
openapi_schema = app.openapi()

# Document the optional acting-user header carried by every route
openapi_schema["x-request-headers"] = [
    {"name": "X-User-ID", "description": "Acting user id (UUID); echoed in logs and error envelopes."},
    {"name": "X-Correlation-ID", "description": "Correlation id; generated when absent and returned on every response."},
]

# Write to file
output_dir = "interfaces"
os.makedirs(output_dir, exist_ok=True)
output_path = os.path.join(output_dir, "openapi.json")

with open(output_path, "w") as f:
    json.dump(openapi_schema, f, indent=2)
