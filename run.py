"""Development server for the salon admin API."""
from __future__ import annotations

import os

from salon_admin import create_app


def print_routes(flask_app) -> None:
    print("\n=== Salon admin endpoints ===")
    for rule in sorted(flask_app.url_map.iter_rules(), key=lambda r: r.rule):
        if rule.endpoint == "static":
            continue
        methods = ",".join(sorted(rule.methods - {"HEAD", "OPTIONS"}))
        print(f"{methods:<18} {rule.rule}")
    print("=============================\n")


def main() -> None:
    flask_app = create_app()
    print_routes(flask_app)

    mode = "atomic" if flask_app.config.get("ATOMIC_COMPLETION") else "two-step"
    flask_app.logger.info(
        "Completion mode: %s; login required: %s",
        mode,
        bool(flask_app.config.get("LOGIN_REQUIRED")),
    )

    debug_enabled = os.environ.get("FLASK_DEBUG", "0") in {"1", "true", "True"}
    flask_app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)), debug=debug_enabled)


if __name__ == "__main__":
    main()
