import os
import tempfile

# Keep the user settings store out of the real home directory during tests.
os.environ.setdefault("CATECHISM_SETTINGS_DIR", tempfile.mkdtemp(prefix="catechism-settings-"))
