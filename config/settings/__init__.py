import os

# DJANGO_ENV selects the settings flavour; pytest sets
# DJANGO_SETTINGS_MODULE=config.settings.test directly.
_env = os.getenv("DJANGO_ENV", "local").lower()

if _env in ("prod", "production"):
    from .prod import *  # noqa
elif _env == "test":
    from .test import *  # noqa
else:
    from .local import *  # noqa
