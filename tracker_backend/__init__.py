"""Top-level package marker for tracker_backend.

The Flask application lives in ``tracker_backend.app``; build it with
``tracker_backend.app.flask_app.create_app()``.
"""
