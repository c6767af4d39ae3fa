import sys

from config import settings
from ui.app import create_app


def main():
    """
    SignalBoard entry point.
    Serves the read-only dashboard over the stored pipeline results.
    """
    try:
        settings.validate_env()
    except ValueError as e:
        print(f"Configuration error: {e}")
        return 1

    app = create_app()
    print("SignalBoard dashboard running on http://127.0.0.1:5000")
    app.run(host="127.0.0.1", port=5000, debug=False)
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nStopped by user.")
        sys.exit(0)
