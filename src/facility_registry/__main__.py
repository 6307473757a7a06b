from __future__ import annotations

import os

import uvicorn


def main() -> None:
    host = os.getenv("FACILITY_REGISTRY_HOST", "0.0.0.0")
    port = int(os.getenv("FACILITY_REGISTRY_PORT", "8110"))
    uvicorn.run("facility_registry.app:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
