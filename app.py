# app.py (gunicorn entry + local runner)

import atexit
import os
import signal
import sys

from harvestchain import create_app


def _install_signal_handlers(store):
    """Local runner only; gunicorn keeps its own worker signal handling."""

    def _on_signal(signum, _frame):
        store.close()
        sys.exit(0)

    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)


# gunicorn: app:app
app = create_app()
atexit.register(app.extensions["harvestchain"].close)


# Local run only
if __name__ == "__main__":
    _install_signal_handlers(app.extensions["harvestchain"])
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")), debug=app.config["APP_ENV"] != "production")
