"""infracanvas web: FastAPI backend for the canvas."""

__version__ = "0.3.0"


def __getattr__(name: str):
    if name == "app":
        from infracanvas_web.app import app

        return app
    raise AttributeError(f"module 'infracanvas_web' has no attribute {name!r}")
