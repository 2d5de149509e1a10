"""Theme Sync — keep a local theme project in step with a remote store.

Loads theme files as assets and watches the project folder for changes,
handing each settled change to an uploader callback.
"""

__version__ = "1.0.0"
__app_name__ = "Theme Sync"
