#!/usr/bin/env python3
"""Start the dispatch API behind a proxy, honoring the PORT environment variable."""

import os
import sys

import uvicorn


def resolve_port(default: int = 8000) -> int:
    port = os.environ.get("PORT", str(default))
    try:
        return int(port)
    except ValueError:
        print(f"Warning: Invalid PORT value '{port}', using default {default}", file=sys.stderr)
        return default


def main() -> int:
    src_path = os.path.join(os.getcwd(), "src")
    if os.path.isdir(src_path) and src_path not in sys.path:
        sys.path.insert(0, src_path)

    port = resolve_port()
    print(f"Starting Romana dispatch API on port {port}...", file=sys.stderr)
    # Single worker; the platform proxy sets the forwarded headers.
    uvicorn.run(
        "romana_dispatch.main:app",
        host="0.0.0.0",
        port=port,
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
