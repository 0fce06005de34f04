"""Version information."""

__version__ = "0.2.0"
__version_info__ = (0, 2, 0)

__app_name__ = "Wind Monitor"
__description__ = "Scrapes wind24.it observations into a rolling per-owner history"


def get_app_info():
    return {
        "name": __app_name__,
        "version": __version__,
        "description": __description__,
    }


def get_full_title():
    return f"{__app_name__} v{__version__}"
