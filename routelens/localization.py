"""Locale policy for picking geographic name fields.

The probe backend stores location names in the native (Chinese) form and, when
the GeoIP database has them, English variants in ``*_en`` fields. The console
shows native names for Chinese locales and English names everywhere else.
"""

from typing import Optional

from .models import Hop

NATIVE_LOCALE_PREFIX = "zh"
LOCATION_SEPARATOR = ", "


def is_native_locale(locale: Optional[str]) -> bool:
    """Check whether a locale tag reads the native name fields (zh, zh-CN, zh_TW...)."""
    return (locale or "").strip().lower().startswith(NATIVE_LOCALE_PREFIX)


def pick_field(native: Optional[str], english: Optional[str], locale: Optional[str]) -> str:
    """Choose between the native and English variant of a name.

    Parameters
    ----------
    native : Optional[str]
        Name in the backend's native language.
    english : Optional[str]
        English variant, may be missing or empty.
    locale : Optional[str]
        Active locale tag, e.g. "en", "zh-CN".

    Returns
    -------
    str
        ``native`` for Chinese locales; otherwise ``english`` when non-empty,
        falling back to ``native``. Missing values become "".

    Examples
    --------
        >>> pick_field("北京", "Beijing", "en")
        'Beijing'
        >>> pick_field("北京", "", "zh-CN")
        '北京'
    """
    native = native or ""
    if is_native_locale(locale):
        return native
    return english or native


def format_location(hop: Hop, locale: Optional[str]) -> str:
    """Join city, subdivision and country of a hop for display.

    Empty parts are skipped, so a hop with only a country yields just the
    country name and a hop with nothing yields "".
    """
    parts = [
        pick_field(hop.city, hop.city_en, locale),
        pick_field(hop.subdiv, hop.subdiv_en, locale),
        pick_field(hop.country, hop.country_en, locale),
    ]
    return LOCATION_SEPARATOR.join(p for p in parts if p)
